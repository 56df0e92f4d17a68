"""OpenAI-compatible LLM provider using the ``openai`` SDK.

Also serves xAI and any other endpoint that speaks the Chat Completions
protocol, selected through ``base_url``.
"""

from __future__ import annotations

import json
import logging

from commerce_agent.llm.base import (
    BaseLLMProvider,
    LLMMessage,
    LLMResponse,
    ToolCall,
    ToolDefinition,
    token_usage,
)

logger = logging.getLogger(__name__)


def _chat_message(msg: LLMMessage) -> dict:
    if msg.role == "tool":
        return {"role": "tool", "content": msg.content, "tool_call_id": msg.tool_call_id or ""}
    if msg.role == "assistant" and msg.tool_calls:
        return {
            "role": "assistant",
            "content": msg.content or None,
            "tool_calls": [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                }
                for call in msg.tool_calls
            ],
        }
    return {"role": msg.role, "content": msg.content}


def _decode_arguments(name: str, raw: str | None) -> dict:
    try:
        arguments = json.loads(raw or "{}")
    except json.JSONDecodeError:
        logger.warning("Unparseable arguments for tool %s: %r", name, raw)
        return {}
    return arguments if isinstance(arguments, dict) else {}


class OpenAIProvider(BaseLLMProvider):
    """LLM provider backed by :class:`openai.AsyncOpenAI`."""

    label = "OpenAI"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
    ):
        super().__init__(api_key=api_key, model=model, base_url=base_url, max_tokens=max_tokens)
        import openai

        self._client = openai.AsyncOpenAI(**self._client_kwargs())

    async def _create(self, messages: list[LLMMessage], tools: list[ToolDefinition]) -> LLMResponse:
        request: dict = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [_chat_message(m) for m in messages],
        }
        if tools:
            request["tools"] = [t.as_chat_function() for t in tools]

        response = await self._client.chat.completions.create(**request)
        choice = response.choices[0]
        calls = [
            ToolCall(
                id=tc.id,
                name=tc.function.name,
                arguments=_decode_arguments(tc.function.name, tc.function.arguments),
            )
            for tc in choice.message.tool_calls or []
        ]
        return LLMResponse(
            content=choice.message.content or "",
            tool_calls=calls or None,
            usage=token_usage(response.usage.prompt_tokens, response.usage.completion_tokens)
            if response.usage
            else None,
            stop_reason=choice.finish_reason,
        )
