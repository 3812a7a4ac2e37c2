"""Event reminder scheduling and push dispatch."""

__version__ = "1.0.0"
