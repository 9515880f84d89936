"""Multi-source catalog synchronization service."""

__version__ = "0.1.0"
