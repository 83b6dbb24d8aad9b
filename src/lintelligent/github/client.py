"""Async GitHub REST and OAuth client used by the API gateway."""

import base64
import logging
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from lintelligent.config import GitHubOAuthConfig

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


class GitHubAPIError(Exception):
    """Raised when GitHub answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(message)


def decode_base64_content(content: str) -> str:
    """Decode the base64 `content` field of a contents API response."""
    return base64.b64decode("".join(content.split())).decode("utf-8", errors="replace")


class GitHubClient:
    """Pass-through client for the GitHub REST API, authenticated as the session user."""

    def __init__(
        self,
        token: str,
        base_url: str = GITHUB_API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token: OAuth access token of the session user
            base_url: API base URL (override for GitHub Enterprise)
            transport: Optional httpx transport (tests use httpx.MockTransport)
            timeout: Request timeout in seconds
        """
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._client.get(path, params=params)
        if not response.is_success:
            logger.warning(f"GitHub GET {path} returned {response.status_code}")
            raise GitHubAPIError(response.status_code, f"GitHub returned {response.status_code}")
        return response.json()

    async def get_authenticated_user(self) -> dict[str, Any]:
        return await self._get("/user")

    async def list_repos(self) -> list[dict[str, Any]]:
        """Repositories of the authenticated user, most recently updated first."""
        return await self._get("/user/repos", params={"per_page": 100, "sort": "updated"})

    async def list_branches(self, owner: str, repo: str) -> list[dict[str, Any]]:
        return await self._get(f"/repos/{owner}/{repo}/branches")

    async def get_tree(self, owner: str, repo: str, branch: str) -> dict[str, Any]:
        """Recursive file tree at the head commit of a branch."""
        branch_data = await self._get(f"/repos/{owner}/{repo}/branches/{quote(branch)}")
        tree_sha = branch_data["commit"]["sha"]
        return await self._get(
            f"/repos/{owner}/{repo}/git/trees/{tree_sha}", params={"recursive": "1"}
        )

    async def get_contents(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> Any:
        """Contents API response with file content decoded from base64.

        Directory listings are returned unchanged.
        """
        params = {"ref": ref} if ref else None
        data = await self._get(f"/repos/{owner}/{repo}/contents/{quote(path)}", params=params)
        if isinstance(data, dict) and data.get("encoding") == "base64" and data.get("content"):
            data = {**data, "content": decode_base64_content(data["content"]), "encoding": "utf-8"}
        return data


class GitHubOAuth:
    """GitHub OAuth web flow: authorize URL and code-for-token exchange."""

    def __init__(
        self,
        config: GitHubOAuthConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.config.client_id)

    def authorize_url(self, state: str) -> str:
        query = urlencode(
            {
                "client_id": self.config.client_id,
                "redirect_uri": self.config.redirect_uri,
                "scope": self.config.scope,
                "state": state,
            }
        )
        return f"{self.config.oauth_base_url}/login/oauth/authorize?{query}"

    async def exchange_code(self, code: str) -> str:
        """Exchange an authorization code for an access token.

        Raises:
            GitHubAPIError: If GitHub rejects the exchange or returns no token
            httpx.HTTPError: On transport failure
        """
        async with httpx.AsyncClient(transport=self._transport, timeout=30.0) as client:
            response = await client.post(
                f"{self.config.oauth_base_url}/login/oauth/access_token",
                headers={"Accept": "application/json"},
                json={
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                    "code": code,
                    "redirect_uri": self.config.redirect_uri,
                },
            )
        if not response.is_success:
            raise GitHubAPIError(400, "Failed to exchange code for token")

        access_token = response.json().get("access_token")
        if not access_token:
            raise GitHubAPIError(400, "No access token received")
        return access_token

    async def fetch_user(self, access_token: str) -> dict[str, Any]:
        """Fetch the profile of the token's owner.

        Raises:
            GitHubAPIError: If the profile cannot be fetched
        """
        async with GitHubClient(
            access_token, base_url=self.config.api_base_url, transport=self._transport
        ) as gh:
            try:
                return await gh.get_authenticated_user()
            except GitHubAPIError as e:
                raise GitHubAPIError(400, "Failed to fetch user info") from e
