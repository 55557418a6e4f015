"""BetterTasks - personal task manager client and assistant service."""

__version__ = "0.3.0"
