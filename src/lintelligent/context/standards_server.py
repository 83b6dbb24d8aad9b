"""MCP stdio server exposing coding-standards and security-rules tools."""

import json
import logging
import os

from mcp.server.fastmcp import FastMCP

from lintelligent.context import standards

logger = logging.getLogger(__name__)

mcp = FastMCP("lintelligent-code-standards")


@mcp.tool()
def get_coding_standards(language: str = standards.DEFAULT_LANGUAGE, severity: str | None = None) -> str:
    """Return coding standards for a language as JSON.

    Args:
        language: Source language (unknown languages fall back to javascript)
        severity: Optional filter - low, medium or high
    """
    logger.info(f"get_coding_standards called for {language} (severity={severity})")
    return json.dumps(standards.get_coding_standards(language, severity))


@mcp.tool()
def get_security_rules(language: str = standards.DEFAULT_LANGUAGE, severity: str | None = None) -> str:
    """Return security rules for a language as JSON.

    Args:
        language: Source language (unknown languages fall back to javascript)
        severity: Optional filter - low, medium or high
    """
    logger.info(f"get_security_rules called for {language} (severity={severity})")
    return json.dumps(standards.get_security_rules(language, severity))


def main() -> None:
    # stdout carries the protocol; logging.basicConfig writes to stderr
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
    mcp.run()


if __name__ == "__main__":
    main()
