"""Declarative, allow-listed entity querying over document stores."""

__version__ = "0.1.0"
