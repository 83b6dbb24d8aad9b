"""API routers."""

from lintelligent.web.routes import auth, github, review

__all__ = ["auth", "github", "review"]
