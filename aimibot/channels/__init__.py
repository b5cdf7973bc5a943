"""
Channel package.
"""

from aimibot.channels.base import (
    Container,
    IncomingMessage,
    Item,
    Location,
    MessageHandler,
    PlatformAdapter,
)
from aimibot.channels.cli import CLIChannel
from aimibot.channels.discord import DiscordChannel

__all__ = [
    "Container",
    "IncomingMessage",
    "Item",
    "Location",
    "MessageHandler",
    "PlatformAdapter",
    "CLIChannel",
    "DiscordChannel",
]
