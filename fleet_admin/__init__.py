"""Fleet administration backend and local-first trip lifecycle core."""

__version__ = "1.0.0"
