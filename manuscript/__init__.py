"""Manuscript - long-session audio recorder."""

__version__ = "0.1.0"
