"""MCP stdio server exposing the get_project_context tool."""

import json
import logging
import os

from mcp.server.fastmcp import FastMCP

from lintelligent.config import load_config
from lintelligent.context.repo_context import GitHubFileFetcher, build_project_context
from lintelligent.models.context import RepoContextRequest

logger = logging.getLogger(__name__)

mcp = FastMCP("lintelligent-repo-context")


@mcp.tool()
def get_project_context(owner: str, repo: str, ref: str, file_path: str, access_token: str) -> str:
    """Fetch a file, the files it imports and the project's config files as JSON.

    Args:
        owner: Repository owner
        repo: Repository name
        ref: Branch name or commit SHA
        file_path: Path of the file under review
        access_token: GitHub token used for every fetch
    """
    request = RepoContextRequest(
        owner=owner, repo=repo, ref=ref, file_path=file_path, access_token=access_token
    )
    settings = load_config().context
    fetcher = GitHubFileFetcher(owner, repo, ref, access_token)
    try:
        context = build_project_context(
            request,
            fetcher,
            max_imports=settings.max_imports,
            related_file_chars=settings.related_file_chars,
            config_file_chars=settings.config_file_chars,
        )
    finally:
        fetcher.close()
    return json.dumps(context.to_dict())


def main() -> None:
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
    mcp.run()


if __name__ == "__main__":
    main()
