"""Local command-line task tracker backed by an embedded key-value store."""

__version__ = "0.1.0"
