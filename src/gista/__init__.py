"""Gista: article capture and listen client core."""

__version__ = "0.1.0"
