"""Shared fakes: an in-memory platform and a scripted completion backend."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from aimibot.channels.base import Container, Item, Location, PlatformAdapter
from aimibot.conversation import ToolCall, Turn
from aimibot.providers.base import LLMProvider, LLMResponse


class FakeAdapter(PlatformAdapter):
    """Containers and histories held in plain dicts."""

    name = "fake"

    def __init__(self, layout: dict[tuple[str, str], list[tuple[str, str]]]) -> None:
        # layout: (container_id, container_name) -> [(location_id, location_name)]
        self.containers: list[Container] = []
        self.history: dict[str, list[Item]] = {}
        self.sent: list[tuple[str, str, str | None]] = []
        self.typing: list[str] = []
        for (cid, cname), locs in layout.items():
            container = Container(id=cid, name=cname, member_count=3)
            for lid, lname in locs:
                container.locations.append(
                    Location(id=lid, name=lname, container_id=cid, container_name=cname)
                )
                self.history[lid] = []
            self.containers.append(container)
        self._next_id = 1000

    def add_items(self, location_id: str, *texts: str, author: str = "alice") -> None:
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for text in texts:
            n = len(self.history[location_id])
            self.history[location_id].append(Item(
                id=str(self._next_id),
                author=author,
                content=text,
                timestamp=start + timedelta(minutes=n),
                attachments=[],
            ))
            self._next_id += 1

    async def start(self, on_message):
        pass

    async def stop(self) -> None:
        pass

    def list_containers(self) -> list[Container]:
        return self.containers

    async def fetch_recent_items(self, location, count, before_id=None):
        items = self.history.get(location.id, [])
        if before_id is not None:
            items = [i for i in items if int(i.id) < int(before_id)]
        return list(reversed(items[-count:]))

    async def deliver_text(self, location, text, reply_to=None):
        self.sent.append((location.id, text, reply_to))
        self._next_id += 1
        return str(self._next_id)

    async def show_activity_indicator(self, location) -> None:
        self.typing.append(location.id)


class ScriptedProvider(LLMProvider):
    """Returns queued responses in order and records every request."""

    def __init__(self, responses: list[LLMResponse | Exception] | None = None, repeat: LLMResponse | None = None) -> None:
        self.responses = list(responses or [])
        self.repeat = repeat
        self.requests: list[list[dict[str, Any]]] = []
        self.tools_seen: list[Any] = []

    @property
    def default_model(self) -> str:
        return "scripted"

    async def complete(self, turns: list[Turn], tools=None, model=None, max_tokens=2500, temperature=0.7):
        self.requests.append([t.to_dict() for t in turns])
        self.tools_seen.append(tools)
        if self.responses:
            nxt = self.responses.pop(0)
        elif self.repeat is not None:
            nxt = self.repeat
        else:
            raise AssertionError("ScriptedProvider ran out of responses")
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


def text_reply(content: str | None, reasoning: str | None = None) -> LLMResponse:
    return LLMResponse(content=content, reasoning=reasoning)


def call_reply(*calls: tuple[str, str, dict[str, Any] | str], content: str | None = None) -> LLMResponse:
    tool_calls = [
        ToolCall(call_id=cid, name=name, arguments=args if isinstance(args, str) else json.dumps(args))
        for cid, name, args in calls
    ]
    return LLMResponse(content=content, tool_calls=tool_calls)


@pytest.fixture
def single_server() -> FakeAdapter:
    adapter = FakeAdapter({("100", "Home"): [("1", "general"), ("2", "random")]})
    adapter.add_items("1", "first", "second", "third")
    return adapter


@pytest.fixture
def two_servers() -> FakeAdapter:
    return FakeAdapter({
        ("100", "Alpha"): [("1", "general"), ("2", "alpha-only")],
        ("200", "Beta"): [("3", "general")],
    })
