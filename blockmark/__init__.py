"""Markdown parsing with block extraction, change detection, HTTP routes and a WebSocket hub."""

__version__ = "1.0.0"
__all__ = ["__version__"]