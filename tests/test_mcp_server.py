"""MCP tools served over the in-memory transport against a fake platform."""

import asyncio
import json

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from aimibot import mcp_server
from aimibot.executor import ERROR_PREFIX, CapabilityExecutor


def call(name, args=None) -> str:
    async def go():
        async with Client(mcp_server.mcp) as client:
            result = await client.call_tool(name, args or {})
            return result.content[0].text
    return asyncio.run(go())


@pytest.fixture
def bound(single_server, monkeypatch):
    monkeypatch.setattr(mcp_server, "_executor", CapabilityExecutor(single_server))
    return single_server


def test_tool_names() -> None:
    async def go():
        async with Client(mcp_server.mcp) as client:
            return sorted(t.name for t in await client.list_tools())
    assert asyncio.run(go()) == ["list-servers", "read-messages", "send-message"]


def test_list_servers(bound) -> None:
    servers = json.loads(call("list-servers"))
    assert servers[0]["name"] == "Home"
    assert servers[0]["channels"] == ["#general", "#random"]


def test_read_messages_defaults_and_limit(bound) -> None:
    text = call("read-messages", {"channel": "#general", "limit": 2})
    assert text.startswith("Messages from #general in Home:")
    body = json.loads(text.split("\n", 1)[1])
    assert [m["content"] for m in body] == ["second", "third"]

    body = json.loads(call("read-messages", {"channel": "general"}).split("\n", 1)[1])
    assert len(body) == 3


@pytest.mark.parametrize("limit", [0, 101])
def test_read_messages_rejects_out_of_range_limit(bound, limit) -> None:
    with pytest.raises(ToolError, match="limit"):
        call("read-messages", {"channel": "general", "limit": limit})


def test_send_message(bound) -> None:
    text = call("send-message", {"channel": "random", "message": "hello", "server": "Home"})
    assert text.startswith("Message sent successfully to #random in Home. Message ID: ")
    assert bound.sent == [("2", "hello", None)]


def test_resolution_errors_come_back_as_text(two_servers, monkeypatch) -> None:
    monkeypatch.setattr(mcp_server, "_executor", CapabilityExecutor(two_servers))
    text = call("send-message", {"channel": "alpha-only", "message": "hi"})
    assert text.startswith(ERROR_PREFIX)
    assert two_servers.sent == []


def test_unbound_server_reports_not_ready(monkeypatch) -> None:
    monkeypatch.setattr(mcp_server, "_executor", None)
    with pytest.raises(ToolError, match="not ready"):
        call("list-servers")
