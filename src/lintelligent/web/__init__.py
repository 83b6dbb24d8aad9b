"""HTTP API for Lintelligent."""

from lintelligent.web.app import create_app

__all__ = ["create_app"]
