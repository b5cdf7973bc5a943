"""
Capability executor: runs one tool call against the platform.

Every failure comes back as text prefixed ``Error executing tool:`` so the
model can read it next round and try again with better arguments.
"""

from __future__ import annotations

import json
from typing import Any

from loguru import logger

from aimibot.channels.base import PlatformAdapter
from aimibot.tools import (
    Capability,
    ListServersParams,
    ReadMessagesParams,
    SendMessageParams,
    parse_params,
)

ERROR_PREFIX = "Error executing tool: "
LIST_CHANNEL_SAMPLE = 20


class CapabilityExecutor:
    """Executes read/list/send against an injected platform adapter.

    Usage::

        executor = CapabilityExecutor(adapter)
        text = await executor.execute("read_messages", {"channel": "general"})
    """

    def __init__(self, adapter: PlatformAdapter) -> None:
        self.adapter = adapter

    async def execute(self, name: str, arguments: dict[str, Any]) -> str:
        """Run ``name`` with already-normalized ``arguments``. Never raises."""
        try:
            cap = Capability.parse(name)
            if cap is Capability.UNKNOWN:
                raise ValueError(f"Unknown tool: {name}")

            params = parse_params(cap, arguments)

            if isinstance(params, ListServersParams):
                return self._list_servers()
            if isinstance(params, ReadMessagesParams):
                return await self._read_messages(params)
            if isinstance(params, SendMessageParams):
                return await self._send_message(params)
            raise ValueError(f"Unknown tool: {name}")
        except Exception as exc:
            logger.warning(f"Tool '{name}' failed: {exc}")
            return f"{ERROR_PREFIX}{exc}"

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _list_servers(self) -> str:
        servers = [
            {
                "name": c.name,
                "id": c.id,
                "memberCount": c.member_count,
                "channels": [f"#{loc.name}" for loc in c.locations[:LIST_CHANNEL_SAMPLE]],
            }
            for c in self.adapter.list_containers()
        ]
        return json.dumps(servers, indent=2, ensure_ascii=False)

    async def _read_messages(self, params: ReadMessagesParams) -> str:
        location = self.adapter.resolve_location(params.channel, params.server)
        items = await self.adapter.fetch_recent_items(location, params.limit)

        # Adapters return newest first; show oldest first.
        formatted = [
            {
                "author": item.author,
                "content": item.content,
                "timestamp": item.timestamp.isoformat(),
                "attachments": list(item.attachments),
            }
            for item in reversed(items)
        ]
        header = f"Messages from #{location.name} in {location.container_name}:"
        return f"{header}\n{json.dumps(formatted, indent=2, ensure_ascii=False)}"

    async def _send_message(self, params: SendMessageParams) -> str:
        location = self.adapter.resolve_location(params.channel, params.server)
        item_id = await self.adapter.deliver_text(location, params.message)
        return (
            f"Message sent successfully to #{location.name} in {location.container_name}. "
            f"Message ID: {item_id}"
        )
