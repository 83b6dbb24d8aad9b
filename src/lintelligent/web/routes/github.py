"""Authenticated pass-through proxy to the GitHub REST API."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from lintelligent.github.client import GitHubAPIError, GitHubClient
from lintelligent.web.deps import AppServices, get_services, require_session
from lintelligent.web.session import SessionData

logger = logging.getLogger(__name__)

router = APIRouter()


async def _proxy(
    session: SessionData,
    services: AppServices,
    call: Callable[[GitHubClient], Awaitable[Any]],
    error_message: str,
) -> Any:
    """Run one GitHub call, mapping upstream failures to {"error": ...} responses."""
    try:
        async with services.github_client(session.gh_token) as gh:
            return await call(gh)
    except GitHubAPIError as e:
        return JSONResponse(status_code=e.status_code, content={"error": error_message})
    except httpx.HTTPError as e:
        logger.error(f"GitHub request failed: {e}")
        return JSONResponse(status_code=500, content={"error": error_message})
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Unexpected GitHub response: {e!r}")
        return JSONResponse(status_code=500, content={"error": error_message})


@router.get("/repos")
async def list_repos(
    session: SessionData = Depends(require_session),
    services: AppServices = Depends(get_services),
):
    return await _proxy(
        session, services, lambda gh: gh.list_repos(), "Failed to fetch repositories"
    )


@router.get("/repos/{owner}/{repo}/branches")
async def list_branches(
    owner: str,
    repo: str,
    session: SessionData = Depends(require_session),
    services: AppServices = Depends(get_services),
):
    return await _proxy(
        session, services, lambda gh: gh.list_branches(owner, repo), "Failed to fetch branches"
    )


@router.get("/repos/{owner}/{repo}/tree/{branch:path}")
async def get_tree(
    owner: str,
    repo: str,
    branch: str,
    session: SessionData = Depends(require_session),
    services: AppServices = Depends(get_services),
):
    return await _proxy(
        session, services, lambda gh: gh.get_tree(owner, repo, branch), "Failed to fetch file tree"
    )


@router.get("/repos/{owner}/{repo}/contents")
async def get_contents(
    owner: str,
    repo: str,
    path: str | None = None,
    ref: str | None = None,
    session: SessionData = Depends(require_session),
    services: AppServices = Depends(get_services),
):
    if not path:
        return JSONResponse(status_code=400, content={"error": "Missing path parameter"})
    return await _proxy(
        session,
        services,
        lambda gh: gh.get_contents(owner, repo, path, ref),
        "Failed to fetch file content",
    )
