"""Configuration loading and validation for Lintelligent."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_MODEL = "claude-3-haiku-20240307"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./lintelligent.db"


@dataclass
class AnthropicConfig:
    """Anthropic API configuration."""

    api_key: str = ""
    model: str = DEFAULT_MODEL
    max_tokens: int = 1500
    temperature: float = 0.1


@dataclass
class GitHubOAuthConfig:
    """GitHub OAuth app configuration."""

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:3001/api/auth/github/callback"
    scope: str = "repo read:user"
    api_base_url: str = "https://api.github.com"
    oauth_base_url: str = "https://github.com"


@dataclass
class SessionConfig:
    """Signed cookie session configuration."""

    secret: str = ""
    ttl_seconds: int = 8 * 60 * 60
    state_ttl_seconds: int = 10 * 60
    secure_cookies: bool = False


@dataclass
class DatabaseConfig:
    """Review persistence configuration."""

    url: str = DEFAULT_DATABASE_URL


@dataclass
class ContextSettings:
    """Context-gathering tool configuration."""

    enabled: bool = True
    max_rules_per_category: int = 3
    max_imports: int = 5
    related_file_chars: int = 2000
    config_file_chars: int = 1000


@dataclass
class ServerSettings:
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 3001
    frontend_url: str = "http://localhost:3000"
    log_level: str = "INFO"
    environment: str = "development"
    max_body_bytes: int = 100 * 1024

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@dataclass
class Config:
    """Complete application configuration."""

    anthropic: AnthropicConfig = field(default_factory=AnthropicConfig)
    github: GitHubOAuthConfig = field(default_factory=GitHubOAuthConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    context: ContextSettings = field(default_factory=ContextSettings)
    server: ServerSettings = field(default_factory=ServerSettings)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Path to config file (default: lintelligent.yaml if present)

    Returns:
        Loaded configuration
    """
    if config_path is None:
        config_path = Path(os.environ.get("LINTELLIGENT_CONFIG", "lintelligent.yaml"))

    raw_config: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw_config = yaml.safe_load(f) or {}

    raw_config = _expand_env_vars(raw_config)

    return _parse_config(raw_config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in config."""
    if isinstance(obj, str):
        if obj.startswith("${") and obj.endswith("}"):
            env_var = obj[2:-1]
            return os.environ.get(env_var, "")
        return obj
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_config(raw: dict[str, Any]) -> Config:
    """Parse raw config dict into Config object."""
    anthropic_raw = raw.get("anthropic", {})
    anthropic = AnthropicConfig(
        api_key=anthropic_raw.get("api_key") or os.environ.get("ANTHROPIC_API_KEY", ""),
        model=anthropic_raw.get("model") or os.environ.get("ANTHROPIC_MODEL", DEFAULT_MODEL),
        max_tokens=anthropic_raw.get("max_tokens", 1500),
        temperature=anthropic_raw.get("temperature", 0.1),
    )

    github_raw = raw.get("github", {})
    github = GitHubOAuthConfig(
        client_id=github_raw.get("client_id") or os.environ.get("GITHUB_CLIENT_ID", ""),
        client_secret=github_raw.get("client_secret")
        or os.environ.get("GITHUB_CLIENT_SECRET", ""),
        redirect_uri=github_raw.get("redirect_uri")
        or os.environ.get(
            "GITHUB_REDIRECT_URI", "http://localhost:3001/api/auth/github/callback"
        ),
        scope=github_raw.get("scope", "repo read:user"),
        api_base_url=github_raw.get("api_base_url", "https://api.github.com"),
        oauth_base_url=github_raw.get("oauth_base_url", "https://github.com"),
    )

    server_raw = raw.get("server", {})
    server = ServerSettings(
        host=server_raw.get("host") or os.environ.get("HOST", "0.0.0.0"),
        port=int(server_raw.get("port") or os.environ.get("PORT", 3001)),
        frontend_url=server_raw.get("frontend_url")
        or os.environ.get("FRONTEND_URL", "http://localhost:3000"),
        log_level=(server_raw.get("log_level") or os.environ.get("LOG_LEVEL", "INFO")).upper(),
        environment=server_raw.get("environment") or os.environ.get("ENVIRONMENT", "development"),
        max_body_bytes=server_raw.get("max_body_bytes", 100 * 1024),
    )

    session_raw = raw.get("session", {})
    session = SessionConfig(
        secret=session_raw.get("secret") or os.environ.get("SESSION_SECRET", ""),
        ttl_seconds=session_raw.get("ttl_seconds", 8 * 60 * 60),
        state_ttl_seconds=session_raw.get("state_ttl_seconds", 10 * 60),
        secure_cookies=session_raw.get("secure_cookies", server.is_production),
    )

    database_raw = raw.get("database", {})
    database = DatabaseConfig(
        url=database_raw.get("url") or os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
    )

    context_raw = raw.get("context", {})
    context = ContextSettings(
        enabled=context_raw.get("enabled", _env_bool("CONTEXT_TOOLS_ENABLED", True)),
        max_rules_per_category=context_raw.get("max_rules_per_category", 3),
        max_imports=context_raw.get("max_imports", 5),
        related_file_chars=context_raw.get("related_file_chars", 2000),
        config_file_chars=context_raw.get("config_file_chars", 1000),
    )

    return Config(
        anthropic=anthropic,
        github=github,
        session=session,
        database=database,
        context=context,
        server=server,
    )


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of errors.

    Only settings without which the server must not start are errors.
    Features that degrade at request time are reported by config_warnings().

    Args:
        config: Configuration to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if not config.session.secret:
        errors.append("Missing session secret (set SESSION_SECRET or session.secret)")

    if config.session.ttl_seconds <= 0:
        errors.append(f"session.ttl_seconds must be positive, got {config.session.ttl_seconds}")

    if not 0 < config.server.port < 65536:
        errors.append(f"Invalid port: {config.server.port}")

    return errors


def config_warnings(config: Config) -> list[str]:
    """List optional settings that are missing."""
    warnings = []

    if not config.anthropic.api_key:
        warnings.append("ANTHROPIC_API_KEY not set - /api/review will return 500")

    if not config.github.client_id or not config.github.client_secret:
        warnings.append("GitHub OAuth not configured - repo reviews are unavailable")

    return warnings
