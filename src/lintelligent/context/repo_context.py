"""Repo-context assembly for a single file in a GitHub repository.

All files are read through the GitHub contents API pinned to the requested
ref, so the target file, its imports and the config files come from the
same snapshot. Every fetch except the target file is best-effort: a
failure is treated as "file not found" and skipped.
"""

import logging
from collections.abc import Callable

from github import Auth, Github, GithubException

from lintelligent.context.imports import parse_imports, resolve_import_candidates
from lintelligent.models.context import ProjectContext, RelatedFile, RepoContextRequest

logger = logging.getLogger(__name__)

FileFetcher = Callable[[str], str | None]

MAX_IMPORTS = 5
RELATED_FILE_CHAR_LIMIT = 2_000
CONFIG_FILE_CHAR_LIMIT = 1_000

# Config key -> paths tried in order; the first that exists wins.
CONFIG_FILES: dict[str, list[str]] = {
    "packageJson": ["package.json"],
    "tsconfigJson": ["tsconfig.json"],
    "eslintrc": [".eslintrc.json", ".eslintrc.js"],
}


class TargetFileNotFoundError(Exception):
    """Raised when the file under review cannot be fetched."""

    def __init__(self, request: RepoContextRequest) -> None:
        self.params = request.describe()
        super().__init__(
            f"Failed to fetch target file: {request.file_path}. Params received: {self.params}"
        )


class GitHubFileFetcher:
    """Reads text files from one repository at one ref via PyGithub."""

    def __init__(
        self,
        owner: str,
        repo: str,
        ref: str,
        access_token: str,
        base_url: str | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            owner: Repository owner
            repo: Repository name
            ref: Branch name or commit SHA
            access_token: OAuth token of the user who requested the review
            base_url: Optional API base URL for GitHub Enterprise
        """
        auth = Auth.Token(access_token)
        self._gh = Github(auth=auth, base_url=base_url) if base_url else Github(auth=auth)
        self._full_name = f"{owner}/{repo}"
        self._ref = ref

    def __call__(self, path: str) -> str | None:
        """Return decoded file content, or None if the path cannot be read."""
        try:
            repo = self._gh.get_repo(self._full_name, lazy=True)
            contents = repo.get_contents(path, ref=self._ref)
        except (GithubException, OSError) as e:
            logger.debug(f"Could not fetch {self._full_name}:{path}@{self._ref}: {e}")
            return None

        # Directories come back as a list of entries
        if isinstance(contents, list) or contents.encoding != "base64":
            return None
        return contents.decoded_content.decode("utf-8", errors="replace")

    def close(self) -> None:
        self._gh.close()


def _fetch_first(fetch: FileFetcher, candidates: list[str]) -> tuple[str, str] | None:
    for candidate in candidates:
        content = fetch(candidate)
        if content:
            return candidate, content
    return None


def build_project_context(
    request: RepoContextRequest,
    fetch: FileFetcher,
    max_imports: int = MAX_IMPORTS,
    related_file_chars: int = RELATED_FILE_CHAR_LIMIT,
    config_file_chars: int = CONFIG_FILE_CHAR_LIMIT,
) -> ProjectContext:
    """Assemble the target file, its imported files and key config files.

    Args:
        request: Repository, ref and file under review
        fetch: Callable returning file text for a repository path, or None
        max_imports: Only the first N import specifiers are followed
        related_file_chars: Truncation limit per related file
        config_file_chars: Truncation limit per config file

    Returns:
        ProjectContext bundle

    Raises:
        TargetFileNotFoundError: If the target file cannot be fetched
    """
    target_content = fetch(request.file_path)
    if target_content is None:
        raise TargetFileNotFoundError(request)

    related_files: list[RelatedFile] = []
    unresolved: list[str] = []
    for specifier in parse_imports(target_content)[:max_imports]:
        candidates = resolve_import_candidates(specifier, request.file_path)
        found = _fetch_first(fetch, candidates)
        if found is None:
            logger.debug(f"No candidate found for import {specifier!r} ({candidates})")
            unresolved.append(specifier)
            continue
        path, content = found
        related_files.append(
            RelatedFile(
                path=path,
                content=content[:related_file_chars],
                reason=f"Imported by {request.file_path}",
            )
        )

    configs: dict[str, str] = {}
    for key, paths in CONFIG_FILES.items():
        found = _fetch_first(fetch, paths)
        if found is not None:
            configs[key] = found[1][:config_file_chars]

    summary = (
        f"Project: {request.project_id} ({request.ref}). Reviewing file: {request.file_path}."
    )
    if related_files:
        summary += f" Related files: {', '.join(f.path for f in related_files)}."
    if unresolved:
        summary += f" Unresolved imports: {', '.join(unresolved)}."

    logger.info(
        f"Built context for {request.project_id}:{request.file_path} - "
        f"{len(related_files)} related, {len(configs)} configs, {len(unresolved)} unresolved"
    )

    return ProjectContext(
        target_path=request.file_path,
        target_content=target_content,
        related_files=related_files,
        configs=configs,
        project_summary=summary,
        unresolved_imports=unresolved,
    )
