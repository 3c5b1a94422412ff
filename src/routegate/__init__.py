"""routegate - route-scoped access control and membership lifecycle."""

__version__ = "0.1.0"
