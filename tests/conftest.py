"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

SAMPLE_CODE = """\
function getUser(id) {
  const query = "SELECT * FROM users WHERE id = " + id;
  return db.execute(query);
}
"""

SAMPLE_MODEL_RESPONSE = """\
{
  "suggestions": [
    {
      "severity": "high",
      "line": 2,
      "message": "SQL built by string concatenation",
      "reason": "const query = \\"SELECT * FROM users WHERE id = \\" + id allows injection",
      "fixedCode": "db.execute('SELECT * FROM users WHERE id = ?', [id])"
    },
    {
      "severity": "low",
      "line": 1,
      "message": "Missing JSDoc",
      "reason": "function getUser(id) is undocumented"
    }
  ],
  "summary": "One injection risk and one style nit.",
  "aiModel": "claude-3-haiku-20240307"
}
"""

SAMPLE_TS_FILE = """\
import { formatDate } from "./util";
import debounce from "lodash";
const config = require("../config");

export function render(date: Date): string {
  return formatDate(date);
}
"""


@pytest.fixture
def sample_code() -> str:
    """A snippet with an obvious SQL injection."""
    return SAMPLE_CODE


@pytest.fixture
def sample_model_response() -> str:
    """A well-formed model reply with two suggestions."""
    return SAMPLE_MODEL_RESPONSE


@pytest.fixture
def sample_ts_file() -> str:
    """A TypeScript file with relative, bare and require imports."""
    return SAMPLE_TS_FILE


@pytest.fixture
def config(tmp_path):
    """Configuration suitable for tests: secret set, context tools off."""
    from lintelligent.config import (
        AnthropicConfig,
        Config,
        ContextSettings,
        DatabaseConfig,
        GitHubOAuthConfig,
        SessionConfig,
    )

    return Config(
        anthropic=AnthropicConfig(api_key="test-anthropic-key"),
        github=GitHubOAuthConfig(
            client_id="test-client-id",
            client_secret="test-client-secret",
            redirect_uri="http://localhost:3001/api/auth/github/callback",
        ),
        session=SessionConfig(secret="test-session-secret-0123456789abcdef"),
        database=DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'reviews.db'}"),
        context=ContextSettings(enabled=False),
    )


@pytest.fixture
def sample_feedback():
    """Parsed feedback with one high and one low suggestion."""
    from lintelligent.review.reviewer import parse_review_response

    return parse_review_response(SAMPLE_MODEL_RESPONSE, "claude-3-haiku-20240307")


@pytest.fixture
def mock_orchestrator(sample_feedback):
    """Orchestrator double that returns sample_feedback."""
    orchestrator = MagicMock()
    orchestrator.is_configured = True
    orchestrator.review = AsyncMock(return_value=sample_feedback)
    orchestrator.ensure_connected = AsyncMock()
    orchestrator.close = AsyncMock()
    return orchestrator


@pytest.fixture
def mock_store():
    """Review store double that accepts every write."""
    store = MagicMock()
    store.save_review = AsyncMock(side_effect=lambda review: review.id)
    store.update_rating = AsyncMock(return_value=True)
    store.close = AsyncMock()
    return store
