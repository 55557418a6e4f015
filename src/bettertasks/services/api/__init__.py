"""Backend API wrappers."""
