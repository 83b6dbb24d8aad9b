"""Application services and FastAPI dependencies."""

from dataclasses import dataclass

import httpx
from fastapi import Depends, HTTPException, Request

from lintelligent.config import Config
from lintelligent.github.client import GitHubClient, GitHubOAuth
from lintelligent.review.orchestrator import ReviewOrchestrator
from lintelligent.storage.store import ReviewStore
from lintelligent.web.session import SessionData, SessionSigner


@dataclass
class AppServices:
    """Long-lived collaborators shared by all requests."""

    config: Config
    signer: SessionSigner
    orchestrator: ReviewOrchestrator
    store: ReviewStore
    oauth: GitHubOAuth
    github_transport: httpx.AsyncBaseTransport | None = None

    def github_client(self, token: str) -> GitHubClient:
        """A per-request GitHub client authenticated as the session user."""
        return GitHubClient(
            token,
            base_url=self.config.github.api_base_url,
            transport=self.github_transport,
        )


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_optional_session(
    request: Request, services: AppServices = Depends(get_services)
) -> SessionData | None:
    return services.signer.get_session(request)


def require_session(session: SessionData | None = Depends(get_optional_session)) -> SessionData:
    if session is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return session
