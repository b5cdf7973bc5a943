"""
Gateway: connects a platform adapter to the agent.

- Routes IncomingMessage → Agent.run() → segmented replies
- Builds the per-message system prompt (server name + recent context)
- Middleware chain around the agent call (logging)
- Every failure ends in one generic apology; details go to the log only

Each inbound message is handled independently; nothing is shared between
runs except the read-only tool table and the adapter itself.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from loguru import logger

from aimibot.agent import Agent
from aimibot.channels.base import IncomingMessage, PlatformAdapter
from aimibot.errors import TransportError
from aimibot.segmenter import MAX_MESSAGE_LENGTH, PART_DELAY, deliver

ERROR_REPLY = "Sorry, I encountered an error. Please try again."
CONTEXT_MESSAGES = 5


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

Middleware = Callable[[IncomingMessage, Callable], Awaitable[str | None]]
"""A middleware is an async function:
    async def my_middleware(msg, next) -> str | None:
        # return None to drop the message, or call next(msg) to continue
        return await next(msg)
"""


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class Gateway:
    """Connects one adapter to the agent.

    Usage::

        gw = Gateway(agent=agent, adapter=DiscordChannel(token))
        gw.use(log_messages())
        await gw.run()
    """

    def __init__(
        self,
        agent: Agent,
        adapter: PlatformAdapter,
        *,
        bot_name: str = "AIMI",
        message_limit: int = MAX_MESSAGE_LENGTH,
        part_delay: float = PART_DELAY,
    ) -> None:
        self.agent = agent
        self.adapter = adapter
        self.bot_name = bot_name
        self.message_limit = message_limit
        self.part_delay = part_delay
        self._middleware: list[Middleware] = []

    def use(self, middleware: Middleware) -> "Gateway":
        """Add a middleware to the chain. Returns self for chaining."""
        self._middleware.append(middleware)
        return self

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Start the adapter and block until it stops."""
        logger.info(f"[gateway] Starting adapter {self.adapter.name!r}")
        try:
            await self.adapter.start(self.handle)
        finally:
            await self.adapter.stop()

    # ------------------------------------------------------------------
    # Message routing
    # ------------------------------------------------------------------

    async def handle(self, msg: IncomingMessage) -> None:
        """Answer one inbound message. Never raises."""
        async def execute_chain(m: IncomingMessage) -> str | None:
            return await self._run_agent(m)

        handler: Callable[[IncomingMessage], Awaitable[str | None]] = execute_chain
        for mw in reversed(self._middleware):
            handler = _bind(mw, handler)

        try:
            await self.adapter.show_activity_indicator(msg.location)
            reply = await handler(msg)
            if reply:
                await self._send_reply(msg, reply)
        except TransportError as exc:
            logger.exception(f"[gateway] Completion failed for {msg.location.id}: {exc}")
            await self._send_error(msg)
        except Exception:
            logger.exception(f"[gateway] Error processing message {msg.message_id}")
            await self._send_error(msg)

    async def _run_agent(self, msg: IncomingMessage) -> str:
        context = await self._build_context(msg)
        return await self.agent.run(msg.text, context=context)

    async def _build_context(self, msg: IncomingMessage) -> str:
        """System prompt for this message: where we are and what was said before."""
        items = await self.adapter.fetch_recent_items(
            msg.location, CONTEXT_MESSAGES, before_id=msg.message_id
        )
        recent = "\n".join(f"{i.author}: {i.content}" for i in reversed(items))
        where = "DM" if msg.is_direct else (msg.location.container_name or "DM")
        return (
            f'You are {self.bot_name}, an AI assistant in the "{where}" Discord server.\n'
            "You have access to tools to read Discord channels, list servers, and send messages.\n"
            "When users ask you to check, read, or summarize channels, use the read_messages tool.\n"
            "Always use tool_calls to execute tools, never output JSON directly as text.\n"
            "Provide comprehensive, detailed responses - don't worry about length.\n"
            f"Recent conversation context:\n{recent}"
        )

    async def _send_reply(self, original: IncomingMessage, reply: str) -> None:
        async def send(part: str) -> str:
            return await self.adapter.deliver_text(
                original.location, part, reply_to=original.message_id
            )

        parts = await deliver(send, reply, limit=self.message_limit, delay=self.part_delay)
        if parts > 1:
            logger.info(f"[gateway] Reply split into {parts} parts ({len(reply)} chars)")

    async def _send_error(self, original: IncomingMessage) -> None:
        try:
            await self.adapter.deliver_text(
                original.location, ERROR_REPLY, reply_to=original.message_id
            )
        except Exception as exc:
            logger.error(f"[gateway] Could not deliver error reply: {exc}")


def _bind(middleware: Middleware, next_handler: Callable) -> Callable:
    async def h(m: IncomingMessage) -> str | None:
        return await middleware(m, next_handler)
    return h


# ---------------------------------------------------------------------------
# Built-in middleware factories
# ---------------------------------------------------------------------------

def log_messages() -> Middleware:
    """Logging middleware: log every incoming message and its reply."""
    async def middleware(msg: IncomingMessage, next: Callable) -> str | None:
        logger.info(f"[log] {msg.channel}/{msg.location.id} [{msg.author}]: {msg.text[:100]!r}")
        result = await next(msg)
        logger.info(f"[log] reply: {(result or '')[:100]!r}")
        return result
    return middleware
