"""aimibot: a Discord assistant that lets an LLM read, list and send messages."""

from aimibot.agent import Agent, AgentConfig
from aimibot.channels.base import Container, IncomingMessage, Item, Location, PlatformAdapter
from aimibot.conversation import LoopState, ToolCall, ToolResult, Turn
from aimibot.errors import AimibotError, TransportError
from aimibot.executor import CapabilityExecutor
from aimibot.gateway import Gateway, log_messages
from aimibot.providers.base import LLMProvider, LLMResponse
from aimibot.segmenter import segment
from aimibot.tools import Capability, normalize, tool_schemas

__version__ = "0.1.0"
__all__ = [
    # Core
    "Agent", "AgentConfig",
    "Gateway", "log_messages",
    "CapabilityExecutor",
    # Tools
    "Capability", "normalize", "tool_schemas",
    # Conversation
    "Turn", "ToolCall", "ToolResult", "LoopState",
    # Channels
    "PlatformAdapter", "Container", "Location", "Item", "IncomingMessage",
    # Providers
    "LLMProvider", "LLMResponse",
    # Misc
    "segment", "AimibotError", "TransportError",
]
