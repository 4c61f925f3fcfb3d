"""Terminaut - launcher for AI coding-agent terminal sessions."""

__version__ = "0.1.0"
