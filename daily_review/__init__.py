"""Daily review journaling service and client data layer."""

__version__ = "1.0.0"
