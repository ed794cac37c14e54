"""Asynchronous block sources: local block archives, hl-node hourly files and in-memory caches."""

__version__ = "0.1.0"