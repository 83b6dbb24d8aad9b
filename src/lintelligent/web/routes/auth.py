"""GitHub OAuth login, callback, session inspection and logout."""

import logging
import secrets

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from lintelligent.github.client import GitHubAPIError
from lintelligent.web.deps import AppServices, get_optional_session, get_services
from lintelligent.web.session import GitHubUser, SessionData

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/github/login")
async def github_login(services: AppServices = Depends(get_services)):
    """Redirect to the GitHub authorize page with a fresh CSRF state."""
    if not services.oauth.is_configured:
        return JSONResponse(status_code=500, content={"error": "GitHub OAuth not configured"})

    state = secrets.token_urlsafe(32)
    response = RedirectResponse(services.oauth.authorize_url(state), status_code=302)
    services.signer.set_state(response, state)
    return response


@router.get("/github/callback")
async def github_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    services: AppServices = Depends(get_services),
):
    """Complete the OAuth flow and write the session cookie.

    Failures answer with plain text since the browser lands here directly.
    """
    if not code:
        return PlainTextResponse("Missing authorization code", status_code=400)
    if not state:
        return PlainTextResponse("Missing state parameter", status_code=400)

    expected_state = services.signer.get_state(request)
    if not expected_state or not secrets.compare_digest(expected_state.encode(), state.encode()):
        logger.warning("OAuth callback state mismatch")
        return PlainTextResponse("Invalid state parameter - possible CSRF attack", status_code=403)

    try:
        access_token = await services.oauth.exchange_code(code)
        profile = await services.oauth.fetch_user(access_token)
        user = GitHubUser.from_dict(profile)
    except GitHubAPIError as e:
        logger.warning(f"OAuth callback failed: {e}")
        return PlainTextResponse(str(e), status_code=e.status_code)
    except Exception as e:
        logger.exception(f"OAuth callback error: {e}")
        return PlainTextResponse("Authentication failed", status_code=500)

    logger.info(f"GitHub user signed in: {user.login}")
    response = RedirectResponse(services.config.server.frontend_url, status_code=302)
    services.signer.clear_state(response)
    services.signer.set_session(response, SessionData(gh_token=access_token, gh_user=user))
    return response


@router.get("/me")
async def me(session: SessionData | None = Depends(get_optional_session)):
    if session is None:
        return {"authenticated": False}
    return {"authenticated": True, "user": session.gh_user.to_dict()}


@router.post("/logout")
async def logout(services: AppServices = Depends(get_services)):
    response = JSONResponse({"success": True})
    services.signer.clear_session(response)
    return response
