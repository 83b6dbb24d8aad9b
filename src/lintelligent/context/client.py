"""Client for the local context-gathering tool servers.

Each ContextToolClient owns one long-lived MCP stdio subprocess. The
subprocess is started on the first ensure_connected() call and reused for
the life of the client; it is not pooled or restarted.
"""

import asyncio
import json
import logging
import os
import sys
from contextlib import AsyncExitStack
from typing import Any

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import get_default_environment, stdio_client
from mcp.types import CallToolResult, TextContent

logger = logging.getLogger(__name__)

STANDARDS_SERVER_MODULE = "lintelligent.context.standards_server"
REPO_CONTEXT_SERVER_MODULE = "lintelligent.context.repo_server"


class ContextToolError(Exception):
    """Raised when a context tool cannot be reached or returns an error."""


def parse_tool_result(tool: str, result: CallToolResult) -> Any:
    """Decode the JSON text payload of a tool call.

    Raises:
        ContextToolError: If the tool reported an error or returned no JSON text
    """
    text_blocks = [block.text for block in result.content if isinstance(block, TextContent)]
    if result.isError:
        message = text_blocks[0] if text_blocks else "unknown error"
        raise ContextToolError(f"Tool {tool} failed: {message}")
    if not text_blocks:
        raise ContextToolError(f"Tool {tool} returned no text content")
    try:
        return json.loads(text_blocks[0])
    except json.JSONDecodeError as e:
        raise ContextToolError(
            f"Tool {tool} returned invalid JSON: {text_blocks[0][:100]}"
        ) from e


class ContextToolClient:
    """Connect-once MCP client for a single tool server."""

    def __init__(
        self,
        name: str,
        command: str,
        args: list[str],
        env: dict[str, str] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            name: Label used in logs and errors
            command: Executable that starts the server
            args: Arguments for the command
            env: Environment for the subprocess (default: MCP's safe defaults plus LOG_LEVEL)
        """
        self.name = name
        self._params = StdioServerParameters(command=command, args=args, env=env or _server_env())
        self._session: ClientSession | None = None
        self._stack: AsyncExitStack | None = None
        self._startup_error: ContextToolError | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def for_module(cls, name: str, module: str) -> "ContextToolClient":
        """Client for a server module run with the current interpreter."""
        return cls(name=name, command=sys.executable, args=["-m", module])

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def ensure_connected(self) -> None:
        """Start the server subprocess and initialize the session, once.

        A failed start is remembered and not retried. The stdio transport
        must be closed by the task that opened it.

        Raises:
            ContextToolError: If the server cannot be started or failed to start earlier
        """
        if self._session is not None:
            return
        async with self._lock:
            if self._session is not None:
                return
            if self._startup_error is not None:
                raise ContextToolError(f"{self.name} server unavailable: {self._startup_error}")

            stack = AsyncExitStack()
            try:
                read, write = await stack.enter_async_context(stdio_client(self._params))
                session = await stack.enter_async_context(ClientSession(read, write))
                await session.initialize()
            except Exception as e:
                await stack.aclose()
                self._startup_error = ContextToolError(f"Could not start {self.name} server: {e}")
                raise self._startup_error from e

            self._stack = stack
            self._session = session
            logger.info(f"Connected to {self.name} context server")

    async def call_tool(self, tool: str, arguments: dict[str, Any]) -> Any:
        """Call a tool and return its decoded JSON payload."""
        await self.ensure_connected()
        assert self._session is not None
        try:
            result = await self._session.call_tool(tool, arguments)
        except Exception as e:
            raise ContextToolError(f"Tool {tool} call failed: {e}") from e
        return parse_tool_result(tool, result)

    async def close(self) -> None:
        """Stop the server subprocess."""
        if self._stack is None:
            return
        stack, self._stack, self._session = self._stack, None, None
        try:
            await stack.aclose()
        except Exception as e:
            logger.warning(f"Error closing {self.name} context server: {e}")


def _server_env() -> dict[str, str]:
    env = get_default_environment()
    for key in ("LOG_LEVEL", "LINTELLIGENT_CONFIG", "PYTHONPATH"):
        if key in os.environ:
            env[key] = os.environ[key]
    return env
