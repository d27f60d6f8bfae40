"""Command-line interface."""

from encodeher.cli.main import app, main

__all__ = ["app", "main"]
