"""
OpenAI-compatible completion client.

Works against OpenRouter, OpenAI, and anything else that speaks the
chat-completions envelope:

    request:  {model, messages, tools?, tool_choice?, max_tokens, temperature}
    response: {choices: [{message: {content, tool_calls?, reasoning?}}]}
    error:    {error: {message}}
"""

from __future__ import annotations

import uuid
from typing import Any

import openai
from loguru import logger
from openai import AsyncOpenAI

from aimibot.conversation import ToolCall, Turn
from aimibot.errors import TransportError
from aimibot.providers.base import LLMProvider, LLMResponse

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


def _error_message(exc: openai.APIError) -> str:
    """Pull ``error.message`` out of the endpoint's error envelope if present."""
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict) and inner.get("message"):
            return str(inner["message"])
    return exc.message or "Unknown error"


class OpenAIProvider(LLMProvider):
    """
    LLM provider for OpenAI-compatible APIs.

    Args:
        api_key: API key for the endpoint.
        base_url: API base URL. Defaults to OpenRouter.
        model: Default model name.
        http_client: Optional ``httpx.AsyncClient`` (used by tests to mock transport).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        model: str = "anthropic/claude-3.5-sonnet",
        http_client: Any = None,
    ) -> None:
        self._model = model
        kwargs: dict[str, Any] = {
            "api_key": api_key,
            "base_url": base_url or OPENROUTER_BASE_URL,
            # The loop never retries a failed completion; neither should the SDK.
            "max_retries": 0,
        }
        if http_client is not None:
            kwargs["http_client"] = http_client

        self._client = AsyncOpenAI(**kwargs)
        logger.debug(f"OpenAIProvider initialized: model={model}, base_url={kwargs['base_url']}")

    @property
    def default_model(self) -> str:
        return self._model

    async def complete(
        self,
        turns: list[Turn],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int = 2500,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Call the chat completions endpoint and parse the assistant message."""
        use_model = model or self._model

        kwargs: dict[str, Any] = {
            "model": use_model,
            "messages": [t.to_dict() for t in turns],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"

        try:
            resp = await self._client.chat.completions.create(**kwargs)
        except openai.APIStatusError as exc:
            logger.error(f"LLM API error: HTTP {exc.status_code}")
            raise TransportError(
                f"LLM API error: {_error_message(exc)}", status_code=exc.status_code
            ) from exc
        except openai.APIError as exc:
            logger.error(f"LLM API unreachable: {exc}")
            raise TransportError(f"LLM API error: {_error_message(exc)}") from exc

        if not getattr(resp, "choices", None):
            # Some gateways answer 200 with an error envelope instead of choices.
            err = getattr(resp, "error", None)
            detail = err.get("message") if isinstance(err, dict) else None
            raise TransportError(f"LLM API error: {detail or 'Unknown error'}")

        choice = resp.choices[0]
        message = choice.message
        finish_reason = choice.finish_reason or "stop"

        parsed_tool_calls: list[ToolCall] = []
        for tc in message.tool_calls or []:
            parsed_tool_calls.append(
                ToolCall(
                    call_id=tc.id or str(uuid.uuid4()),
                    name=tc.function.name,
                    arguments=tc.function.arguments or "",
                )
            )

        # Non-standard field, kept by the SDK as an extra attribute.
        reasoning = (message.model_extra or {}).get("reasoning")

        usage: dict[str, int] = {}
        if resp.usage:
            usage = {
                "prompt_tokens": resp.usage.prompt_tokens or 0,
                "completion_tokens": resp.usage.completion_tokens or 0,
                "total_tokens": resp.usage.total_tokens or 0,
            }

        logger.debug(
            f"LLM response: model={resp.model}, finish={finish_reason}, "
            f"tool_calls={len(parsed_tool_calls)}, usage={usage}"
        )

        return LLMResponse(
            content=message.content,
            tool_calls=parsed_tool_calls,
            reasoning=reasoning if isinstance(reasoning, str) else None,
            finish_reason=finish_reason,
            usage=usage,
            model=resp.model or use_model,
        )
