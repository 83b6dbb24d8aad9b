"""Signed-cookie sessions.

The session (GitHub token plus minimal profile) lives only in the signed,
httpOnly `sess` cookie; nothing is stored server-side. Cookies are HS256
JWTs, so tampering and expiry are both detected on read.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any

import jwt
from fastapi import Request, Response

from lintelligent.config import SessionConfig

logger = logging.getLogger(__name__)

SESSION_COOKIE = "sess"
STATE_COOKIE = "oauth_state"
ALGORITHM = "HS256"


@dataclass
class GitHubUser:
    """Minimal GitHub profile kept in the session."""

    id: int
    login: str
    avatar_url: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GitHubUser":
        return cls(id=int(data["id"]), login=str(data["login"]), avatar_url=data.get("avatar_url"))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "login": self.login}
        if self.avatar_url:
            data["avatar_url"] = self.avatar_url
        return data


@dataclass
class SessionData:
    """GitHub credential and profile of the signed-in user."""

    gh_token: str
    gh_user: GitHubUser


class SessionSigner:
    """Encodes, decodes and writes the session and OAuth state cookies."""

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret:
            raise ValueError("Session secret is required")
        self.config = config

    def _encode(self, claims: dict[str, Any], ttl_seconds: int) -> str:
        now = int(time.time())
        return jwt.encode(
            {**claims, "iat": now, "exp": now + ttl_seconds},
            self.config.secret,
            algorithm=ALGORITHM,
        )

    def _decode(self, value: str) -> dict[str, Any] | None:
        try:
            return jwt.decode(value, self.config.secret, algorithms=[ALGORITHM])
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected signed cookie: {e}")
            return None

    def encode_session(self, data: SessionData) -> str:
        return self._encode(
            {"typ": "session", "ghToken": data.gh_token, "ghUser": data.gh_user.to_dict()},
            self.config.ttl_seconds,
        )

    def decode_session(self, value: str | None) -> SessionData | None:
        if not value:
            return None
        claims = self._decode(value)
        if not claims or claims.get("typ") != "session":
            return None
        try:
            return SessionData(
                gh_token=claims["ghToken"], gh_user=GitHubUser.from_dict(claims["ghUser"])
            )
        except (KeyError, TypeError, ValueError):
            return None

    def encode_state(self, state: str) -> str:
        return self._encode({"typ": "oauth_state", "state": state}, self.config.state_ttl_seconds)

    def decode_state(self, value: str | None) -> str | None:
        if not value:
            return None
        claims = self._decode(value)
        if not claims or claims.get("typ") != "oauth_state":
            return None
        return claims.get("state")

    def _set_cookie(self, response: Response, name: str, value: str, max_age: int) -> None:
        response.set_cookie(
            name,
            value,
            max_age=max_age,
            httponly=True,
            samesite="lax",
            secure=self.config.secure_cookies,
        )

    def set_session(self, response: Response, data: SessionData) -> None:
        self._set_cookie(
            response, SESSION_COOKIE, self.encode_session(data), self.config.ttl_seconds
        )

    def get_session(self, request: Request) -> SessionData | None:
        return self.decode_session(request.cookies.get(SESSION_COOKIE))

    def clear_session(self, response: Response) -> None:
        response.delete_cookie(SESSION_COOKIE)

    def set_state(self, response: Response, state: str) -> None:
        self._set_cookie(
            response, STATE_COOKIE, self.encode_state(state), self.config.state_ttl_seconds
        )

    def get_state(self, request: Request) -> str | None:
        return self.decode_state(request.cookies.get(STATE_COOKIE))

    def clear_state(self, response: Response) -> None:
        response.delete_cookie(STATE_COOKIE)
