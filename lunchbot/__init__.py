"""Daily lunch menu Slack bot."""

__version__ = "1.0.0"
