"""Command line interface for back-me-up."""

from .dispatcher import main

__all__ = ["main"]
