"""Command-line interface for Lintelligent."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
import uvicorn
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from lintelligent import __version__
from lintelligent.config import config_warnings, load_config, validate_config
from lintelligent.models.review import ReviewFeedback, Severity
from lintelligent.review.orchestrator import ReviewOrchestrator
from lintelligent.storage.store import ReviewStore, StorageError

console = Console()
log_console = Console(stderr=True)

LANGUAGE_BY_EXTENSION = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
}

SEVERITY_STYLES = {
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
}


def setup_logging(verbose: bool = False, level_name: str = "INFO") -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=log_console, rich_tracebacks=True)],
    )


def _load(config_path: str | None):
    return load_config(Path(config_path) if config_path else None)


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """Lintelligent - AI-powered code review API."""
    load_dotenv()
    setup_logging(verbose, level_name=load_config().server.log_level)


@cli.command("serve")
@click.option("--port", type=int, default=None, help="Port to listen on (default: PORT or 3001)")
@click.option("--host", default=None, help="Host to bind to (default: HOST or 0.0.0.0)")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def serve(port: int | None, host: str | None, config_path: str | None) -> None:
    """Start the API server."""
    from lintelligent.web.app import create_app

    config = _load(config_path)
    errors = validate_config(config)
    if errors:
        for error in errors:
            console.print(f"[red]Config error:[/red] {error}")
        sys.exit(1)
    for warning in config_warnings(config):
        console.print(f"[yellow]Warning:[/yellow] {warning}")

    host = host or config.server.host
    port = port or config.server.port
    app = create_app(config)

    console.print(f"🚀 Starting Lintelligent API on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=config.server.log_level.lower())


@cli.command("review")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--language", default=None, help="Source language (default: from file extension)")
@click.option("--review-type", default="best-practices", help="Review type tag")
@click.option("--output", type=click.Choice(["table", "json"]), default="table")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def review_file(
    file: Path,
    language: str | None,
    review_type: str,
    output: str,
    config_path: str | None,
) -> None:
    """Review a local source file."""
    config = _load(config_path)
    if not config.anthropic.api_key:
        console.print("[red]Error:[/red] ANTHROPIC_API_KEY is not set")
        sys.exit(1)

    language = language or LANGUAGE_BY_EXTENSION.get(file.suffix.lower(), "javascript")
    code = file.read_text(encoding="utf-8")
    if not code.strip():
        console.print(f"[red]Error:[/red] {file} is empty")
        sys.exit(1)

    try:
        feedback = asyncio.run(review_file_async(config, code, language, review_type))
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if output == "json":
        print(json.dumps(feedback.to_dict(), indent=2))
    else:
        print_feedback(feedback, title=str(file))


async def review_file_async(config, code: str, language: str, review_type: str) -> ReviewFeedback:
    orchestrator = ReviewOrchestrator.from_config(config)
    await orchestrator.ensure_connected()
    try:
        return await orchestrator.review(code=code, language=language, review_type=review_type)
    finally:
        await orchestrator.close()


def print_feedback(feedback: ReviewFeedback, title: str) -> None:
    """Render review feedback as a rich table."""
    table = Table(title=f"Review of {title}")
    table.add_column("Line", justify="right")
    table.add_column("Severity")
    table.add_column("Message")
    table.add_column("Reason")

    for suggestion in sorted(feedback.suggestions, key=lambda s: s.line):
        style = SEVERITY_STYLES[suggestion.severity]
        table.add_row(
            str(suggestion.line),
            f"[{style}]{suggestion.severity.value}[/{style}]",
            suggestion.message,
            suggestion.reason,
        )

    console.print(table)
    console.print(f"\n[bold]Summary:[/bold] {feedback.summary}")
    console.print(f"[dim]Model: {feedback.ai_model}[/dim]")


@cli.command("stats")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def stats(config_path: str | None) -> None:
    """Show rating statistics for stored reviews."""
    config = _load(config_path)

    async def _fetch():
        store = ReviewStore(config.database.url)
        try:
            return await store.get_statistics()
        finally:
            await store.close()

    try:
        statistics = asyncio.run(_fetch())
    except StorageError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    table = Table(title="Review Ratings")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Reviews", str(statistics.total_reviews))
    table.add_row("Ratings", str(statistics.total_ratings))
    table.add_row("👍 Positive", str(statistics.positive_ratings))
    table.add_row("👎 Negative", str(statistics.negative_ratings))
    table.add_row("Average", f"{statistics.average_rating:+.2f}")
    console.print(table)


@cli.group("config")
def config_group() -> None:
    """Configuration commands."""
    pass


@config_group.command("validate")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def config_validate(config_path: str | None) -> None:
    """Validate configuration."""
    try:
        config = _load(config_path)
        errors = validate_config(config)

        if errors:
            console.print("[red]Configuration is invalid:[/red]")
            for error in errors:
                console.print(f"  • {error}")
            sys.exit(1)

        console.print("[green]✓ Configuration is valid[/green]")
        for warning in config_warnings(config):
            console.print(f"[yellow]Warning:[/yellow] {warning}")
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        sys.exit(1)


@config_group.command("show")
@click.option("--config", "config_path", type=click.Path(exists=True), help="Config file path")
def config_show(config_path: str | None) -> None:
    """Show current configuration (secrets masked)."""
    config = _load(config_path)

    console.print("\n[bold]Current Configuration[/bold]\n")

    table = Table(title="Settings")
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("Model", config.anthropic.model)
    table.add_row("Anthropic API key", _mask(config.anthropic.api_key))
    table.add_row("GitHub client id", config.github.client_id or "[dim]not set[/dim]")
    table.add_row("GitHub redirect URI", config.github.redirect_uri)
    table.add_row("Session secret", _mask(config.session.secret))
    table.add_row("Database", config.database.url)
    table.add_row("Frontend URL", config.server.frontend_url)
    table.add_row("Listen", f"{config.server.host}:{config.server.port}")
    table.add_row("Environment", config.server.environment)
    table.add_row("Context tools", "enabled" if config.context.enabled else "disabled")

    console.print(table)


def _mask(secret: str) -> str:
    return "[green]set[/green]" if secret else "[red]not set[/red]"


@cli.command("context-server")
@click.argument("server", type=click.Choice(["standards", "repo-context"]))
def context_server(server: str) -> None:
    """Run a context tool server on stdio."""
    if server == "standards":
        from lintelligent.context.standards_server import mcp
    else:
        from lintelligent.context.repo_server import mcp

    mcp.run()


if __name__ == "__main__":
    cli()
