"""Message queue consumer building blocks: messages, allocation strategies, statistics, options and consume contexts."""

__version__ = "0.1.0"

__all__ = ["consume", "message", "options", "statistics", "strategy"]