"""MCP server exposing the Discord tools to MCP clients (e.g. Claude Desktop).

FastMCP server over stdio. It shares the bot's ``CapabilityExecutor`` and
Discord connection, so replies and resolution rules match the chat bot.

Tools:
    list-servers   - List all Discord servers the bot is connected to
    read-messages  - Read recent messages from a Discord channel
    send-message   - Send a message to a Discord channel
"""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from loguru import logger

from aimibot.executor import CapabilityExecutor

MAX_READ_LIMIT = 100

mcp = FastMCP(
    name="aimibot",
    instructions=(
        "Tools for reading and sending Discord messages through the aimibot "
        "connection. `server` may be omitted only when the bot is in one server."
    ),
)

_executor: CapabilityExecutor | None = None


def bind(executor: CapabilityExecutor) -> None:
    """Route every tool call through ``executor``."""
    global _executor
    _executor = executor


def _get_executor() -> CapabilityExecutor:
    if _executor is None:
        raise ToolError("Discord connection is not ready")
    return _executor


def _with_server(server: str, **args: Any) -> dict[str, Any]:
    if server:
        args["server"] = server
    return args


@mcp.tool(name="list-servers")
async def list_servers() -> str:
    """List all Discord servers the bot is connected to."""
    return await _get_executor().execute("list_servers", {})


@mcp.tool(name="read-messages")
async def read_messages(channel: str, server: str = "", limit: int = 50) -> str:
    """Read recent messages from a Discord channel.

    Args:
        channel: Channel name (e.g., "general") or ID.
        server: Server name or ID (optional if bot is only in one server).
        limit: Number of messages to fetch (1-100, default 50).
    """
    if not 1 <= limit <= MAX_READ_LIMIT:
        raise ToolError(f"Invalid arguments: limit: must be between 1 and {MAX_READ_LIMIT}, got {limit}")
    return await _get_executor().execute(
        "read_messages", _with_server(server, channel=channel, limit=limit)
    )


@mcp.tool(name="send-message")
async def send_message(channel: str, message: str, server: str = "") -> str:
    """Send a message to a Discord channel.

    Args:
        channel: Channel name (e.g., "general") or ID.
        message: Message content to send.
        server: Server name or ID (optional if bot is only in one server).
    """
    return await _get_executor().execute(
        "send_message", _with_server(server, channel=channel, message=message)
    )


async def serve(executor: CapabilityExecutor) -> None:
    """Bind ``executor`` and serve the tools on stdin/stdout until EOF."""
    bind(executor)
    logger.info("[mcp] Serving list-servers, read-messages, send-message on stdio")
    await mcp.run_async(transport="stdio")
