"""
Tool table and argument normalization.

Design:
- Exactly three capabilities, a closed enum; anything else is UNKNOWN
- TOOL_SPECS is the schema the model is shown, verbatim
- normalize() repairs model-supplied argument maps (synonyms, stray keys)
- parse_params() builds the typed view the executor works with
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from loguru import logger

from aimibot.errors import InvalidArgumentsError

DEFAULT_READ_LIMIT = 50
MAX_READ_LIMIT = 100


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------

class Capability(str, Enum):
    READ_MESSAGES = "read_messages"
    LIST_SERVERS = "list_servers"
    SEND_MESSAGE = "send_message"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, name: str) -> "Capability":
        try:
            cap = cls(name)
        except ValueError:
            return cls.UNKNOWN
        return cap


@dataclass(frozen=True)
class ToolSpec:
    """Static description of one capability, as the model sees it."""

    capability: Capability
    description: str
    parameters: dict[str, dict[str, Any]] = field(default_factory=dict)
    required: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.capability.value

    def to_schema(self) -> dict[str, Any]:
        """Return the OpenAI-compatible tool schema."""
        parameters: dict[str, Any] = {
            "type": "object",
            "properties": {k: dict(v) for k, v in self.parameters.items()},
        }
        if self.required:
            parameters["required"] = list(self.required)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }


TOOL_SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        capability=Capability.READ_MESSAGES,
        description="Read recent messages from a Discord channel",
        parameters={
            "channel": {
                "type": "string",
                "description": 'Channel name (e.g., "general" or "#general") or channel ID',
            },
            "limit": {
                "type": "number",
                "description": f"Number of messages to fetch (max {MAX_READ_LIMIT})",
                "default": DEFAULT_READ_LIMIT,
            },
            "server": {
                "type": "string",
                "description": "Server name or ID (optional if bot is only in one server)",
            },
        },
        required=("channel",),
    ),
    ToolSpec(
        capability=Capability.LIST_SERVERS,
        description="List all Discord servers and channels the bot has access to",
    ),
    ToolSpec(
        capability=Capability.SEND_MESSAGE,
        description="Send a message to a Discord channel",
        parameters={
            "channel": {"type": "string", "description": "Channel name or ID"},
            "message": {"type": "string", "description": "Message content to send"},
            "server": {"type": "string", "description": "Server name or ID (optional)"},
        },
        required=("channel", "message"),
    ),
)


def tool_schemas() -> list[dict[str, Any]]:
    return [spec.to_schema() for spec in TOOL_SPECS]


# ---------------------------------------------------------------------------
# Argument normalization
# ---------------------------------------------------------------------------

# synonym -> canonical, per capability
_SYNONYMS: dict[Capability, dict[str, str]] = {
    Capability.READ_MESSAGES: {
        "channel_name": "channel",
        "server_name": "server",
        "message_limit": "limit",
        "max_messages": "limit",
    },
    Capability.SEND_MESSAGE: {
        "channel_name": "channel",
        "server_name": "server",
        "content": "message",
        "text": "message",
    },
}

_CANONICAL: dict[Capability, frozenset[str]] = {
    spec.capability: frozenset(spec.parameters) for spec in TOOL_SPECS
}


def normalize(name: str, raw_args: Any) -> dict[str, Any]:
    """Rename synonym keys and drop unrecognized ones. Never raises.

    A synonym is only renamed when its canonical key is absent; if both are
    present the canonical value wins and the synonym is dropped as unknown.
    Unknown tool names are passed through untouched.
    """
    if not isinstance(raw_args, dict):
        return {}
    args = dict(raw_args)

    cap = Capability.parse(name)
    if cap is Capability.UNKNOWN:
        return args

    for synonym, canonical in _SYNONYMS.get(cap, {}).items():
        if synonym in args and canonical not in args:
            args[canonical] = args.pop(synonym)

    allowed = _CANONICAL[cap]
    for key in list(args):
        if key not in allowed:
            logger.warning(f"Removing unrecognized parameter for {name}: {key!r}")
            del args[key]

    return args


# ---------------------------------------------------------------------------
# Typed parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ListServersParams:
    pass


@dataclass(frozen=True)
class ReadMessagesParams:
    channel: str
    limit: int = DEFAULT_READ_LIMIT
    server: str | None = None


@dataclass(frozen=True)
class SendMessageParams:
    channel: str
    message: str
    server: str | None = None


ToolParams = ListServersParams | ReadMessagesParams | SendMessageParams


def _required_str(args: dict[str, Any], key: str) -> str:
    value = args.get(key)
    if value is None or str(value).strip() == "":
        raise InvalidArgumentsError(f"Missing required parameter: {key}")
    return str(value)


def _optional_str(args: dict[str, Any], key: str) -> str | None:
    value = args.get(key)
    if value is None or str(value).strip() == "":
        return None
    return str(value)


def _clamp_limit(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return DEFAULT_READ_LIMIT
    try:
        limit = int(float(value))
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric limit {value!r}")
        return DEFAULT_READ_LIMIT
    return max(1, min(limit, MAX_READ_LIMIT))


def parse_params(cap: Capability, args: dict[str, Any]) -> ToolParams:
    """Build the typed parameter view for a normalized argument map.

    Raises:
        InvalidArgumentsError: a required parameter is missing.
        ValueError: ``cap`` is UNKNOWN.
    """
    if cap is Capability.LIST_SERVERS:
        return ListServersParams()
    if cap is Capability.READ_MESSAGES:
        return ReadMessagesParams(
            channel=_required_str(args, "channel"),
            limit=_clamp_limit(args.get("limit")),
            server=_optional_str(args, "server"),
        )
    if cap is Capability.SEND_MESSAGE:
        # Message text is delivered verbatim, only presence is checked.
        message = args.get("message")
        if message is None or str(message) == "":
            raise InvalidArgumentsError("Missing required parameter: message")
        return SendMessageParams(
            channel=_required_str(args, "channel"),
            message=str(message),
            server=_optional_str(args, "server"),
        )
    raise ValueError(f"No parameters for capability {cap!r}")
