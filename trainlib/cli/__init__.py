"""
Terminal interface for the training library.
"""

from .main import app, main

__all__ = ["app", "main"]
