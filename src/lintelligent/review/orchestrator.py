"""Review orchestration: optional context enrichment followed by one model call."""

import logging
from typing import Any

from lintelligent.config import Config
from lintelligent.context.client import (
    REPO_CONTEXT_SERVER_MODULE,
    STANDARDS_SERVER_MODULE,
    ContextToolClient,
    ContextToolError,
)
from lintelligent.models.context import ProjectContext, RepoContextRequest
from lintelligent.models.review import ReviewFeedback
from lintelligent.review.reviewer import CodeReviewer

logger = logging.getLogger(__name__)


class ReviewConfigurationError(Exception):
    """Raised when a review is requested but the model API is not configured."""


def compress_rules(payload: Any, limit: int) -> str:
    """Render up to `limit` high-severity rules as "Title: description" pairs."""
    if not isinstance(payload, dict):
        return ""
    rules = [r for r in payload.get("rules") or [] if isinstance(r, dict)]
    high = [r for r in rules if r.get("severity") == "high"][:limit]
    return "; ".join(f"{r.get('title', '')}: {r.get('description', '')}" for r in high)


class ReviewOrchestrator:
    """Builds optional context, then delegates to the CodeReviewer.

    Context tool clients are connect-once and owned by the orchestrator;
    call close() on shutdown.
    """

    def __init__(
        self,
        config: Config,
        standards_client: ContextToolClient | None = None,
        repo_client: ContextToolClient | None = None,
        reviewer: CodeReviewer | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Application configuration
            standards_client: Client for the standards/security tool server (None disables hints)
            repo_client: Client for the repo-context tool server (None disables repo context)
            reviewer: Optional reviewer (default: built lazily from config.anthropic)
        """
        self.config = config
        self.standards_client = standards_client
        self.repo_client = repo_client
        self._reviewer = reviewer

    @classmethod
    def from_config(cls, config: Config) -> "ReviewOrchestrator":
        """Orchestrator with subprocess tool servers when context tools are enabled."""
        if not config.context.enabled:
            return cls(config)
        return cls(
            config,
            standards_client=ContextToolClient.for_module("code-standards", STANDARDS_SERVER_MODULE),
            repo_client=ContextToolClient.for_module("repo-context", REPO_CONTEXT_SERVER_MODULE),
        )

    @property
    def is_configured(self) -> bool:
        """True if a model call can be made."""
        return self._reviewer is not None or bool(self.config.anthropic.api_key)

    def _get_reviewer(self) -> CodeReviewer:
        if self._reviewer is None:
            if not self.config.anthropic.api_key:
                raise ReviewConfigurationError("AI API key not configured")
            self._reviewer = CodeReviewer(self.config.anthropic)
        return self._reviewer

    async def ensure_connected(self) -> None:
        """Start the context tool servers. Failures only disable enrichment."""
        for client in (self.standards_client, self.repo_client):
            if client is None:
                continue
            try:
                await client.ensure_connected()
            except ContextToolError as e:
                logger.warning(f"Context server unavailable, continuing without it: {e}")

    async def build_standards_hint(self, language: str) -> str:
        """Compressed high-severity standards and security rules, or "" on any failure."""
        if self.standards_client is None:
            return ""

        limit = self.config.context.max_rules_per_category
        arguments = {"language": language, "severity": "high"}
        try:
            standards = await self.standards_client.call_tool("get_coding_standards", arguments)
            security = await self.standards_client.call_tool("get_security_rules", arguments)
        except ContextToolError as e:
            logger.warning(f"Could not get standards context: {e}")
            return ""

        parts = []
        compressed_standards = compress_rules(standards, limit)
        if compressed_standards:
            parts.append(f"Standards: {compressed_standards}")
        compressed_security = compress_rules(security, limit)
        if compressed_security:
            parts.append(f"Security: {compressed_security}")
        return " | ".join(parts)

    async def build_repo_context(self, request: RepoContextRequest) -> str:
        """Pipe-joined project summary for the prompt, or "" on any failure."""
        if self.repo_client is None:
            return ""
        if not request.file_path:
            logger.warning(f"Invalid file path in repo context request: {request.describe()}")
            return ""

        try:
            payload = await self.repo_client.call_tool(
                "get_project_context", request.to_tool_arguments()
            )
            context = ProjectContext.from_dict(payload)
        except ContextToolError as e:
            logger.warning(f"Could not get repo context: {e}")
            return ""
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Malformed repo context payload: {e}")
            return ""

        if context.unresolved_imports:
            logger.info(f"Unresolved imports in {request.file_path}: {context.unresolved_imports}")
        return context.to_prompt_context(request)

    async def review(
        self,
        code: str,
        language: str = "javascript",
        review_type: str = "best-practices",
        repo_request: RepoContextRequest | None = None,
    ) -> ReviewFeedback:
        """Review a snippet with optional standards hints and repo context.

        Raises:
            ReviewConfigurationError: If no model API key is configured
            anthropic.APIError: If the model call fails
        """
        reviewer = self._get_reviewer()
        logger.info(f"Reviewing {len(code)} chars of {language} ({review_type})")

        standards_hint = await self.build_standards_hint(language)
        repo_context = await self.build_repo_context(repo_request) if repo_request else ""

        return await reviewer.review(
            code=code,
            language=language,
            repo_context=repo_context,
            standards_hint=standards_hint,
        )

    async def close(self) -> None:
        """Stop tool servers and release the model client."""
        # Stdio transports nest, so they are closed in reverse start order.
        for client in (self.repo_client, self.standards_client):
            if client is not None:
                await client.close()
        if self._reviewer is not None:
            await self._reviewer.close()
