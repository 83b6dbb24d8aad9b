"""GitHub integration for Lintelligent."""

from lintelligent.github.client import GitHubAPIError, GitHubClient, GitHubOAuth

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "GitHubOAuth",
]
