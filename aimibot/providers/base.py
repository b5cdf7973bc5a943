"""
LLM Provider base interface.

The agent only talks to a completion backend through this interface, so
tests can swap in a scripted provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from aimibot.conversation import ToolCall, Turn


@dataclass
class LLMResponse:
    content: str | None
    tool_calls: list[ToolCall] = field(default_factory=list)
    reasoning: str | None = None    # Some backends put their answer here instead of content
    finish_reason: str = "stop"
    usage: dict[str, int] = field(default_factory=dict)
    model: str = ""

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_turn(self) -> Turn:
        return Turn(
            role="assistant",
            content=self.content,
            tool_calls=list(self.tool_calls),
            reasoning=self.reasoning,
        )


class LLMProvider(ABC):
    """Abstract chat-completion client."""

    @abstractmethod
    async def complete(
        self,
        turns: list[Turn],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int = 2500,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Send a chat completion request.

        Raises:
            TransportError: endpoint unreachable or non-success status.
        """
        ...

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Return the default model name for this provider."""
        ...
