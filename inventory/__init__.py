"""Route composition inventory backend."""

__version__ = "0.1.0"
