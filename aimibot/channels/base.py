"""
Abstract base classes for platform adapters.

An adapter exposes the chat platform as containers (servers) holding
locations (channels), plus the handful of primitives the tools need.
Target resolution is shared by every adapter and lives here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

from aimibot.errors import AmbiguousTargetError, DisambiguationRequiredError, NotFoundError


# ---------------------------------------------------------------------------
# Platform entities
# ---------------------------------------------------------------------------

@dataclass
class Location:
    """An addressable conversation surface: a channel or a DM."""

    id: str
    name: str
    container_id: str = ""            # Empty for direct conversations
    container_name: str = ""
    is_direct: bool = False
    raw: Any = None                   # Platform channel object


@dataclass
class Container:
    """A top-level grouping the bot is connected to (a server/guild)."""

    id: str
    name: str
    member_count: int = 0
    locations: list[Location] = field(default_factory=list)


@dataclass
class Item:
    """A single message in a location's history."""

    id: str
    author: str
    content: str
    timestamp: datetime
    attachments: list[str] = field(default_factory=list)


@dataclass
class IncomingMessage:
    """A message received from an adapter that the bot should answer."""

    channel: str                      # Adapter name, e.g. "discord", "cli"
    location: Location
    message_id: str
    author: str
    text: str                         # Mentions already stripped
    is_direct: bool = False
    raw: Any = None                   # Raw platform event object


# Handler type: async function that receives an IncomingMessage
MessageHandler = Callable[[IncomingMessage], Awaitable[None]]


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------

class PlatformAdapter(ABC):
    """Abstract base class for chat platforms."""

    name: str = "base"

    @abstractmethod
    async def start(self, on_message: MessageHandler) -> None:
        """Connect and deliver inbound messages to ``on_message`` until stopped."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the adapter gracefully."""
        ...

    @abstractmethod
    def list_containers(self) -> list[Container]:
        """Every container the bot is connected to, with its text locations."""
        ...

    @abstractmethod
    async def fetch_recent_items(
        self,
        location: Location,
        count: int,
        before_id: str | None = None,
    ) -> list[Item]:
        """Fetch up to ``count`` items, most recent first."""
        ...

    @abstractmethod
    async def deliver_text(
        self,
        location: Location,
        text: str,
        reply_to: str | None = None,
    ) -> str:
        """Send ``text`` verbatim and return the delivered item's id."""
        ...

    async def show_activity_indicator(self, location: Location) -> None:
        """Show a typing indicator (optional, no-op by default)."""
        pass

    # ------------------------------------------------------------------
    # Target resolution
    # ------------------------------------------------------------------

    def resolve_container(self, identifier: str | None = None) -> Container:
        """Resolve a server by id, then by case-insensitive name.

        With no identifier, the only connected server is used; several
        connected servers require the caller to pick one.
        """
        containers = self.list_containers()

        if not identifier:
            if len(containers) == 1:
                return containers[0]
            raise DisambiguationRequiredError(
                f"Bot is in {len(containers)} servers. Please specify server name or ID."
            )

        for c in containers:
            if c.id == identifier:
                return c

        matches = [c for c in containers if c.name.lower() == identifier.lower()]
        if not matches:
            raise NotFoundError(f'Server "{identifier}" not found.')
        if len(matches) > 1:
            candidates = [f"{c.name} (ID: {c.id})" for c in matches]
            raise AmbiguousTargetError(
                f'Multiple servers found with name "{identifier}": {", ".join(candidates)}',
                candidates,
            )
        return matches[0]

    def resolve_location(self, identifier: str, container: str | None = None) -> Location:
        """Resolve a channel by id, then by case-insensitive name.

        When ``container`` is given the search is limited to that server.
        Without it the only connected server is searched. With several
        connected servers a name present in more than one of them is
        reported as ambiguous; anything else needs a server.
        """
        clean = identifier.strip().lstrip("#")
        containers = self.list_containers()

        if not container and len(containers) > 1:
            matches = [
                loc for c in containers for loc in c.locations
                if loc.name.lower() == clean.lower()
            ]
            if len(matches) > 1:
                raise _ambiguous_location(identifier, matches)
            raise DisambiguationRequiredError(
                f"Bot is in {len(containers)} servers. Please specify server name or ID."
            )

        scope = self.resolve_container(container)

        for loc in scope.locations:
            if loc.id == clean:
                return loc

        matches = [loc for loc in scope.locations if loc.name.lower() == clean.lower()]
        if not matches:
            raise NotFoundError(f'Channel "{identifier}" not found in server "{scope.name}".')
        if len(matches) > 1:
            raise _ambiguous_location(identifier, matches)
        return matches[0]


def _ambiguous_location(identifier: str, matches: list[Location]) -> AmbiguousTargetError:
    candidates = [f"#{loc.name} ({loc.id}) in {loc.container_name}" for loc in matches]
    return AmbiguousTargetError(
        f'Multiple channels found with name "{identifier}": {", ".join(candidates)}',
        candidates,
    )
