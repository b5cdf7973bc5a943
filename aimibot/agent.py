"""
Agent loop core.

One run per inbound message:

    completion → tool calls? → execute → follow-up completion → ...

Each round appends the assistant turn and its tool results, then asks the
model again with the same tool schema. The loop stops when the model answers
in plain text or when ``max_depth`` rounds have run.

Some models emit tool intent as a JSON blob in the content instead of a
structured call. ``_sniff_tool_call`` is the single place that guesses a
call from such text; it only runs when no structured call is present.
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass
from typing import Any

from loguru import logger

from aimibot.conversation import LoopState, ToolCall, ToolResult, Turn
from aimibot.executor import CapabilityExecutor
from aimibot.providers.base import LLMProvider
from aimibot.tools import Capability, normalize, tool_schemas

DEPTH_EXCEEDED_NOTICE = "Maximum tool calling depth reached."
EMPTY_REPLY_NOTICE = "I processed your request."

DEFAULT_SYSTEM_PROMPT = (
    "You are AIMI, a helpful AI assistant in Discord. You have access to Discord tools "
    "to read messages, list servers, and send messages. Use these tools when users ask "
    "you to check channels, read messages, or interact with Discord.\n"
    "IMPORTANT: Always use tool_calls to execute tools, never output JSON directly as "
    "text. If a tool fails, retry with corrected parameters using another tool_call.\n"
    "Provide comprehensive and detailed responses."
)

# Leading "analysis"/"assistant"/... labels leaked by some reasoning models.
_PREAMBLE_RE = re.compile(r"^(analysis|assistant|commentary|final).*?(?=\*\*|[A-Z])", re.DOTALL)

_LOCATION_KEYS = ("channel", "channel_name")
_MESSAGE_KEYS = ("message", "content", "text")


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

@dataclass
class AgentConfig:
    """Agent configuration."""

    agent_id: str = "aimi"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    # Model
    model: str = ""                 # Empty = provider default
    max_tokens: int = 2500
    temperature: float = 0.7

    # Loop control
    max_depth: int = 5              # Max tool rounds per request


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def strip_preamble(content: str | None) -> str:
    if not content:
        return ""
    return _PREAMBLE_RE.sub("", content, count=1).strip()


def decode_arguments(raw: str | None) -> dict[str, Any]:
    """Decode a tool call's argument JSON; anything unusable becomes ``{}``."""
    if not raw or not raw.strip():
        return {}
    try:
        args = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning(f"Failed to parse tool arguments ({exc}): {raw[:200]!r}")
        return {}
    if not isinstance(args, dict):
        logger.warning(f"Tool arguments are not an object: {raw[:200]!r}")
        return {}
    return args


def _sniff_tool_call(content: str | None) -> ToolCall | None:
    """Guess a tool call from a raw JSON object in the reply text.

    Presence of a message-like key means send_message, otherwise
    read_messages. This is a heuristic and can misclassify.
    """
    if not content or not content.strip().startswith("{"):
        return None
    try:
        args = json.loads(content.strip())
    except json.JSONDecodeError as exc:
        logger.debug(f"Reply looked like JSON but did not parse: {exc}")
        return None
    if not isinstance(args, dict) or not any(k in args for k in _LOCATION_KEYS):
        return None

    if any(k in args for k in _MESSAGE_KEYS):
        cap = Capability.SEND_MESSAGE
    else:
        cap = Capability.READ_MESSAGES
    return ToolCall(
        call_id=f"synthetic_{int(time.time() * 1000)}",
        name=cap.value,
        arguments=json.dumps(args),
    )


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------

class Agent:
    """Core agent: calls the LLM, executes tools, loops.

    Usage::

        agent = Agent(provider=OpenAIProvider(api_key="..."), executor=executor)
        reply = await agent.run("What's new in #general?")
    """

    def __init__(
        self,
        provider: LLMProvider,
        executor: CapabilityExecutor,
        config: AgentConfig | None = None,
    ) -> None:
        self.provider = provider
        self.executor = executor
        self.config = config or AgentConfig()
        self._tools = tool_schemas()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, user_message: str, context: str = "") -> str:
        """Process a user message and return the final reply.

        Args:
            user_message: The user's input, mentions already stripped.
            context: System prompt override for this message.

        Raises:
            TransportError: the completion endpoint failed; never retried.
        """
        state = LoopState(
            turns=[Turn.system(context or self.config.system_prompt), Turn.user(user_message)],
            max_depth=self.config.max_depth,
        )
        logger.info(f"[{self.config.agent_id}] Request: {user_message[:80]!r}")

        assistant = await self._complete(state)

        while True:
            if state.exhausted:
                logger.warning(f"[{self.config.agent_id}] Max tool calling depth ({state.max_depth}) reached")
                return strip_preamble(assistant.content) or assistant.reasoning or DEPTH_EXCEEDED_NOTICE

            if not assistant.tool_calls:
                synthetic = _sniff_tool_call(assistant.content)
                if synthetic is None:
                    return self._final_text(assistant)
                logger.info(f"[{self.config.agent_id}] Converting JSON reply to {synthetic.name} call")
                assistant = Turn(role="assistant", content=None, tool_calls=[synthetic])

            logger.debug(f"[{self.config.agent_id}] Executing tools (round {state.depth + 1})")
            results = [await self._execute_one(tc) for tc in assistant.tool_calls]
            state.extend_round(assistant, results)

            assistant = await self._complete(state)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _complete(self, state: LoopState) -> Turn:
        response = await self.provider.complete(
            state.turns,
            tools=self._tools,
            model=self.config.model or None,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )
        return response.to_turn()

    def _final_text(self, assistant: Turn) -> str:
        text = strip_preamble(assistant.content)
        if text:
            return text
        if assistant.reasoning:
            logger.debug(f"[{self.config.agent_id}] Using reasoning field as content")
            return assistant.reasoning
        return EMPTY_REPLY_NOTICE

    async def _execute_one(self, tc: ToolCall) -> ToolResult:
        """Decode, normalize and execute one call."""
        args = normalize(tc.name, decode_arguments(tc.arguments))
        logger.info(f"Tool: {tc.name}({json.dumps(args, ensure_ascii=False)[:120]})")

        result = await self.executor.execute(tc.name, args)

        logger.debug(f"Tool result [{tc.call_id[:8]}]: {result[:200]}")
        return ToolResult(call_id=tc.call_id, name=tc.name, content=result)
