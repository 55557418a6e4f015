"""Service layer for BetterTasks."""
