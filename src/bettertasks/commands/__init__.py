"""CLI commands for BetterTasks."""
