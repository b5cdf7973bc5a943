"""
Discord channel: gateway connection via discord.py.

Features:
- Responds to DMs and to guild messages that @mention the bot
- Ignores messages from bots (including itself)
- Strips <@id> / <@!id> mentions before handing text to the agent
- Exposes guilds as containers and text channels as locations
- Typing indicator while a reply is being prepared

Setup:
1. Create an application and bot at https://discord.com/developers
2. Enable the "Message Content" privileged intent
3. Invite the bot with Read Messages / Send Messages / Read Message History

Environment variables:
    DISCORD_TOKEN    Bot token from the developer portal
"""

from __future__ import annotations

import re
from typing import Any

import discord
from loguru import logger

from aimibot.channels.base import (
    Container,
    IncomingMessage,
    Item,
    Location,
    MessageHandler,
    PlatformAdapter,
)

_MENTION_RE = re.compile(r"<@!?\d+>")


def strip_mentions(text: str) -> str:
    return _MENTION_RE.sub("", text).strip()


def _location_from_channel(channel: Any) -> Location:
    if isinstance(channel, discord.DMChannel):
        recipient = channel.recipient
        return Location(
            id=str(channel.id),
            name=f"DM with {recipient}" if recipient else "DM",
            container_name="DM",
            is_direct=True,
            raw=channel,
        )
    guild = getattr(channel, "guild", None)
    return Location(
        id=str(channel.id),
        name=getattr(channel, "name", str(channel.id)),
        container_id=str(guild.id) if guild else "",
        container_name=guild.name if guild else "",
        raw=channel,
    )


class DiscordChannel(PlatformAdapter):
    """Discord adapter built on ``discord.Client``."""

    name = "discord"

    def __init__(self, token: str) -> None:
        self.token = token

        intents = discord.Intents.default()
        intents.guilds = True
        intents.guild_messages = True
        intents.dm_messages = True
        intents.message_content = True

        self._client = discord.Client(intents=intents)
        self._handler: MessageHandler | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, on_message: MessageHandler) -> None:
        """Log in and listen for messages until the client is closed."""
        self._handler = on_message
        client = self._client

        @client.event
        async def on_ready() -> None:
            logger.info(f"[discord] Logged in as {client.user} (id={client.user.id if client.user else '?'})")
            logger.info(f"[discord] Connected to {len(client.guilds)} server(s)")

        @client.event
        async def on_message(message: discord.Message) -> None:
            await self._handle_message(message)

        logger.info("[discord] Connecting...")
        await client.start(self.token)

    async def stop(self) -> None:
        if not self._client.is_closed():
            try:
                await self._client.close()
            except Exception as exc:
                logger.warning(f"[discord] Stop error: {exc}")

    # ------------------------------------------------------------------
    # Receive
    # ------------------------------------------------------------------

    async def _handle_message(self, message: discord.Message) -> None:
        if not self._handler or message.author.bot:
            return

        me = self._client.user
        is_direct = message.guild is None
        mentioned = me is not None and any(u.id == me.id for u in message.mentions)
        if not mentioned and not is_direct:
            return

        logger.debug(f"[discord] Message from {message.author}: {message.content[:50]!r}")

        incoming = IncomingMessage(
            channel=self.name,
            location=_location_from_channel(message.channel),
            message_id=str(message.id),
            author=str(message.author),
            text=strip_mentions(message.content),
            is_direct=is_direct,
            raw=message,
        )
        await self._handler(incoming)

    # ------------------------------------------------------------------
    # Platform primitives
    # ------------------------------------------------------------------

    def list_containers(self) -> list[Container]:
        return [
            Container(
                id=str(guild.id),
                name=guild.name,
                member_count=guild.member_count or 0,
                locations=[_location_from_channel(c) for c in guild.text_channels],
            )
            for guild in self._client.guilds
        ]

    async def _channel(self, location: Location) -> Any:
        if location.raw is not None:
            return location.raw
        channel = self._client.get_channel(int(location.id))
        if channel is None:
            channel = await self._client.fetch_channel(int(location.id))
        return channel

    async def fetch_recent_items(
        self,
        location: Location,
        count: int,
        before_id: str | None = None,
    ) -> list[Item]:
        channel = await self._channel(location)
        before = discord.Object(id=int(before_id)) if before_id else None
        items: list[Item] = []
        async for msg in channel.history(limit=count, before=before):
            items.append(Item(
                id=str(msg.id),
                author=str(msg.author),
                content=msg.content,
                timestamp=msg.created_at,
                attachments=[a.url for a in msg.attachments],
            ))
        return items

    async def deliver_text(
        self,
        location: Location,
        text: str,
        reply_to: str | None = None,
    ) -> str:
        channel = await self._channel(location)
        if reply_to:
            sent = await channel.get_partial_message(int(reply_to)).reply(text)
        else:
            sent = await channel.send(text)
        return str(sent.id)

    async def show_activity_indicator(self, location: Location) -> None:
        try:
            channel = await self._channel(location)
            await channel.typing()
        except discord.DiscordException as exc:
            logger.debug(f"[discord] typing indicator failed: {exc}")
