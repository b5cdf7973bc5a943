"""Gateway: context building, segmented replies, and the generic failure reply."""

import asyncio

from loguru import logger

from aimibot.agent import Agent, AgentConfig
from aimibot.channels.base import IncomingMessage
from aimibot.errors import TransportError
from aimibot.executor import CapabilityExecutor
from aimibot.gateway import ERROR_REPLY, Gateway, log_messages
from tests.conftest import ScriptedProvider, call_reply, text_reply


def make_gateway(adapter, provider, **kwargs) -> Gateway:
    agent = Agent(provider=provider, executor=CapabilityExecutor(adapter), config=AgentConfig())
    return Gateway(agent=agent, adapter=adapter, part_delay=0, **kwargs)


def incoming(adapter, text="hello", message_id="9999") -> IncomingMessage:
    location = adapter.resolve_location("general")
    return IncomingMessage(channel="fake", location=location, message_id=message_id, author="bob", text=text)


def test_reply_goes_to_origin_as_reply(single_server) -> None:
    provider = ScriptedProvider([text_reply("Hi Bob!")])
    gw = make_gateway(single_server, provider)
    asyncio.run(gw.handle(incoming(single_server)))

    assert single_server.typing == ["1"]
    assert single_server.sent == [("1", "Hi Bob!", "9999")]


def test_system_prompt_carries_server_and_recent_context(single_server) -> None:
    provider = ScriptedProvider([text_reply("ok")])
    gw = make_gateway(single_server, provider, bot_name="AIMI")
    asyncio.run(gw.handle(incoming(single_server)))

    system = provider.requests[0][0]["content"]
    assert 'You are AIMI, an AI assistant in the "Home" Discord server.' in system
    assert system.endswith("alice: first\nalice: second\nalice: third")


def test_long_reply_is_split_into_parts(single_server) -> None:
    provider = ScriptedProvider([text_reply("a" * 70 + "\n\n" + "b" * 70)])
    gw = make_gateway(single_server, provider, message_limit=100)
    asyncio.run(gw.handle(incoming(single_server)))

    texts = [t for _, t, _ in single_server.sent]
    assert texts == ["**[Part 1/2]**\n\n" + "a" * 70, "**[Part 2/2]**\n\n" + "b" * 70]


def test_transport_error_yields_single_generic_reply(single_server) -> None:
    provider = ScriptedProvider([TransportError("LLM API error: secret-token-in-url", status_code=500)])
    gw = make_gateway(single_server, provider)
    asyncio.run(gw.handle(incoming(single_server)))

    assert single_server.sent == [("1", ERROR_REPLY, "9999")]


def test_transport_error_is_logged_with_traceback(single_server) -> None:
    records = []
    sink = logger.add(lambda m: records.append(m.record), level="ERROR")
    try:
        provider = ScriptedProvider([TransportError("LLM API error: HTTP 502", status_code=502)])
        asyncio.run(make_gateway(single_server, provider).handle(incoming(single_server)))
    finally:
        logger.remove(sink)

    assert len(records) == 1
    assert "HTTP 502" in records[0]["message"]
    assert records[0]["exception"] is not None
    assert records[0]["exception"].type is TransportError


def test_transport_error_mid_loop(single_server) -> None:
    provider = ScriptedProvider([
        call_reply(("c1", "list_servers", {})),
        TransportError("LLM API error: HTTP 500", status_code=500),
    ])
    gw = make_gateway(single_server, provider)
    asyncio.run(gw.handle(incoming(single_server)))
    assert [t for _, t, _ in single_server.sent] == [ERROR_REPLY]


def test_unexpected_error_yields_generic_reply(single_server) -> None:
    provider = ScriptedProvider([RuntimeError("kaboom")])
    gw = make_gateway(single_server, provider)
    asyncio.run(gw.handle(incoming(single_server)))
    assert [t for _, t, _ in single_server.sent] == [ERROR_REPLY]


def test_middleware_wraps_agent(single_server) -> None:
    seen: list[str] = []

    async def spy(msg, next):
        seen.append(msg.text)
        return await next(msg)

    async def block(msg, next):
        return None

    provider = ScriptedProvider([text_reply("fine")])
    gw = make_gateway(single_server, provider).use(log_messages()).use(spy)
    asyncio.run(gw.handle(incoming(single_server, text="ping")))
    assert seen == ["ping"]
    assert single_server.sent[-1][1] == "fine"

    gw = make_gateway(single_server, ScriptedProvider()).use(block)
    before = len(single_server.sent)
    asyncio.run(gw.handle(incoming(single_server)))
    assert len(single_server.sent) == before


def test_concurrent_messages_are_independent(single_server) -> None:
    provider = ScriptedProvider(repeat=text_reply("same answer"))
    gw = make_gateway(single_server, provider)

    async def both():
        await asyncio.gather(
            gw.handle(incoming(single_server, text="one", message_id="5001")),
            gw.handle(incoming(single_server, text="two", message_id="5002")),
        )

    asyncio.run(both())
    assert sorted(r for _, _, r in single_server.sent) == ["5001", "5002"]
    user_texts = sorted(req[1]["content"] for req in provider.requests)
    assert user_texts == ["one", "two"]
