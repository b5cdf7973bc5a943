"""
CLI channel for local testing.

Reads from stdin, writes to stdout. Pretends to be a single server with a
couple of channels held in memory, so the tools have something to read from
and send to without a Discord connection.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import datetime, timezone
from itertools import count

from loguru import logger

from aimibot.channels.base import (
    Container,
    IncomingMessage,
    Item,
    Location,
    MessageHandler,
    PlatformAdapter,
)


class CLIChannel(PlatformAdapter):
    """
    Simple CLI adapter for running the bot locally.

    Usage::

        channel = CLIChannel()
        await channel.start(my_handler)
    """

    name = "cli"

    def __init__(
        self,
        prompt: str = "You: ",
        bot_name: str = "Bot",
        channels: tuple[str, ...] = ("console", "general"),
    ) -> None:
        self.prompt = prompt
        self.bot_name = bot_name
        self._running = False
        self._ids = count(1)

        self.container = Container(id="local", name="local", member_count=1)
        self.container.locations = [
            Location(id=f"cli_{name}", name=name, container_id="local", container_name="local")
            for name in channels
        ]
        self.console = self.container.locations[0]
        self._history: dict[str, list[Item]] = {loc.id: [] for loc in self.container.locations}

    def _record(self, location: Location, author: str, text: str) -> Item:
        item = Item(
            id=str(next(self._ids)),
            author=author,
            content=text,
            timestamp=datetime.now(timezone.utc),
        )
        self._history[location.id].append(item)
        return item

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, on_message: MessageHandler) -> None:
        """Read lines from stdin in a loop and dispatch each one."""
        self._running = True
        print("[aimibot CLI] Type your message and press Enter. Ctrl+C to quit.\n")

        loop = asyncio.get_running_loop()

        while self._running:
            # Read input in a thread so we don't block the event loop
            line = await loop.run_in_executor(None, self._read_line)
            if line is None:
                break
            text = line.strip()
            if not text:
                continue

            item = self._record(self.console, "user", text)
            msg = IncomingMessage(
                channel=self.name,
                location=self.console,
                message_id=item.id,
                author="user",
                text=text,
                is_direct=True,
            )
            await on_message(msg)

        self._running = False

    def _read_line(self) -> str | None:
        """Read a line from stdin (blocking). None on EOF."""
        sys.stdout.write(self.prompt)
        sys.stdout.flush()
        line = sys.stdin.readline()
        return line if line else None

    async def stop(self) -> None:
        self._running = False
        logger.debug("CLIChannel stopped")

    # ------------------------------------------------------------------
    # Platform primitives
    # ------------------------------------------------------------------

    def list_containers(self) -> list[Container]:
        return [self.container]

    async def fetch_recent_items(
        self,
        location: Location,
        count: int,
        before_id: str | None = None,
    ) -> list[Item]:
        items = self._history.get(location.id, [])
        if before_id is not None:
            items = [i for i in items if int(i.id) < int(before_id)]
        return list(reversed(items[-count:]))

    async def deliver_text(
        self,
        location: Location,
        text: str,
        reply_to: str | None = None,
    ) -> str:
        item = self._record(location, self.bot_name, text)
        if location.id == self.console.id:
            print(f"\n{self.bot_name}: {text}\n")
        else:
            print(f"\n[{self.bot_name} → #{location.name}] {text}\n")
        return item.id

    async def show_activity_indicator(self, location: Location) -> None:
        print(f"[{self.bot_name} is typing...]")
