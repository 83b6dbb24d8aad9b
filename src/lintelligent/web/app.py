"""FastAPI application factory for the Lintelligent API."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from lintelligent import __version__
from lintelligent.config import Config
from lintelligent.github.client import GitHubOAuth
from lintelligent.review.orchestrator import ReviewOrchestrator
from lintelligent.storage.store import ReviewStore
from lintelligent.web.deps import AppServices
from lintelligent.web.routes import auth, github, review
from lintelligent.web.session import SessionSigner

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
}


class BodySizeLimitMiddleware:
    """Refuse request bodies larger than max_bytes with 413.

    A declared Content-Length is checked up front; chunked bodies are counted
    as they are read.
    """

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_bytes:
            response = JSONResponse(status_code=413, content={"error": "Request body too large"})
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise HTTPException(status_code=413, detail="Request body too large")
            return message

        await self.app(scope, limited_receive, send)


def validation_details(errors: list[dict[str, Any]]) -> dict[str, Any]:
    """Group pydantic errors into {"fieldErrors": {field: [msgs]}, "formErrors": [msgs]}."""
    field_errors: dict[str, list[str]] = {}
    form_errors: list[str] = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = error.get("msg", "Invalid value")
        if loc:
            field_errors.setdefault(".".join(loc), []).append(message)
        else:
            form_errors.append(message)
    return {"fieldErrors": field_errors, "formErrors": form_errors}


def create_app(
    config: Config,
    orchestrator: ReviewOrchestrator | None = None,
    store: ReviewStore | None = None,
    github_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create the API application.

    Args:
        config: Application configuration (a session secret is required)
        orchestrator: Review orchestrator (default: built from config)
        store: Review store (default: built from config.database)
        github_transport: Optional httpx transport for all GitHub calls

    Returns:
        FastAPI application
    """
    services = AppServices(
        config=config,
        signer=SessionSigner(config.session),
        orchestrator=orchestrator or ReviewOrchestrator.from_config(config),
        store=store or ReviewStore(config.database.url),
        oauth=GitHubOAuth(config.github, transport=github_transport),
        github_transport=github_transport,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await services.orchestrator.ensure_connected()
        logger.info(f"Lintelligent API ready ({config.server.environment})")
        yield
        try:
            await services.orchestrator.close()
        finally:
            await services.store.close()

    app = FastAPI(
        title="Lintelligent",
        description="AI-powered code review API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.server.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=config.server.max_body_bytes)

    @app.middleware("http")
    async def security_middleware(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "details": validation_details(exc.errors())},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.get("/")
    async def root():
        return {"message": "Lintelligent API", "version": __version__}

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "lintelligent"}

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(github.router, prefix="/api/github", tags=["github"])
    app.include_router(review.router, prefix="/api/review", tags=["review"])

    return app
