"""Ping diagnostic plugin with an iteration-aware execution session."""

__version__ = "0.1.0"
