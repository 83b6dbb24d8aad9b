"""Context-gathering tools and their client for Lintelligent."""

from lintelligent.context.client import ContextToolClient, ContextToolError
from lintelligent.context.imports import parse_imports, resolve_import_candidates
from lintelligent.context.repo_context import (
    GitHubFileFetcher,
    TargetFileNotFoundError,
    build_project_context,
)

__all__ = [
    "ContextToolClient",
    "ContextToolError",
    "GitHubFileFetcher",
    "TargetFileNotFoundError",
    "build_project_context",
    "parse_imports",
    "resolve_import_candidates",
]
