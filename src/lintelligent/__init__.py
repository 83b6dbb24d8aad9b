"""Lintelligent - AI code review API with GitHub repository context."""

__version__ = "0.1.0"
