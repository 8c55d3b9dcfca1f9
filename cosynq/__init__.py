"""Cosynq booking backend: spaces, capacity and availability."""

__version__ = "0.1.0"
