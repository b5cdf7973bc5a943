"""
Conversation data model for the tool loop.

A request to the completion endpoint is an ordered list of Turns:

    system → user → assistant(tool_calls) → tool → tool → assistant ...

Every assistant turn that carries tool calls is followed immediately by one
tool turn per call, each tagged with the call's id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


# ---------------------------------------------------------------------------
# Turns
# ---------------------------------------------------------------------------

@dataclass
class ToolCall:
    call_id: str
    name: str
    arguments: str                  # Raw JSON text from the model, untrusted


@dataclass
class ToolResult:
    call_id: str
    name: str
    content: str


@dataclass
class Turn:
    role: Literal["system", "user", "assistant", "tool"]
    content: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: str | None = None     # tool turns only
    reasoning: str | None = None        # assistant turns only; never sent back

    @classmethod
    def system(cls, content: str) -> "Turn":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Turn":
        return cls(role="user", content=content)

    @classmethod
    def from_result(cls, result: ToolResult) -> "Turn":
        return cls(role="tool", content=result.content, tool_call_id=result.call_id)

    def to_dict(self) -> dict[str, Any]:
        """Render in the chat-completions wire format."""
        if self.role == "tool":
            return {
                "role": "tool",
                "tool_call_id": self.tool_call_id,
                "content": self.content or "",
            }
        d: dict[str, Any] = {"role": self.role, "content": self.content or ""}
        if self.role == "assistant" and self.tool_calls:
            d["tool_calls"] = [
                {
                    "id": tc.call_id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": tc.arguments},
                }
                for tc in self.tool_calls
            ]
        return d


# ---------------------------------------------------------------------------
# Loop state
# ---------------------------------------------------------------------------

@dataclass
class LoopState:
    """State owned by a single run of the tool loop."""

    turns: list[Turn]
    max_depth: int = 5
    depth: int = 0

    @property
    def exhausted(self) -> bool:
        return self.depth >= self.max_depth

    def extend_round(self, assistant: Turn, results: list[ToolResult]) -> None:
        """Append one completed round and advance the depth counter."""
        pending = [tc.call_id for tc in assistant.tool_calls]
        answered = [r.call_id for r in results]
        if sorted(pending) != sorted(answered):
            raise ValueError(f"Tool results {answered} do not match calls {pending}")
        self.turns.append(assistant)
        self.turns.extend(Turn.from_result(r) for r in results)
        self.depth += 1
