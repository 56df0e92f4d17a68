"""Anthropic LLM provider using the ``anthropic`` SDK.

The Messages API takes the system prompt as a top-level parameter, tool calls
as ``tool_use`` blocks and tool results as ``tool_result`` blocks inside a
``user`` message.
"""

from __future__ import annotations

from commerce_agent.llm.base import (
    BaseLLMProvider,
    LLMMessage,
    LLMResponse,
    ToolCall,
    ToolDefinition,
    token_usage,
)


def _content_blocks(msg: LLMMessage) -> list[dict]:
    blocks = [{"type": "text", "text": msg.content}] if msg.content else []
    blocks.extend(
        {"type": "tool_use", "id": call.id, "name": call.name, "input": call.arguments}
        for call in msg.tool_calls or []
    )
    return blocks


def _split_system(messages: list[LLMMessage]) -> tuple[str, list[dict]]:
    system = "\n".join(m.content for m in messages if m.role == "system")
    turns: list[dict] = []
    for msg in messages:
        if msg.role == "system":
            continue
        if msg.role == "tool":
            result = {"type": "tool_result", "tool_use_id": msg.tool_call_id or "", "content": msg.content}
            turns.append({"role": "user", "content": [result]})
        elif msg.tool_calls:
            turns.append({"role": "assistant", "content": _content_blocks(msg)})
        else:
            turns.append({"role": msg.role, "content": msg.content})
    return system, turns


class AnthropicProvider(BaseLLMProvider):
    """LLM provider backed by :class:`anthropic.AsyncAnthropic`."""

    label = "Anthropic"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
    ):
        super().__init__(api_key=api_key, model=model, base_url=base_url, max_tokens=max_tokens)
        import anthropic

        self._client = anthropic.AsyncAnthropic(**self._client_kwargs())

    async def _create(self, messages: list[LLMMessage], tools: list[ToolDefinition]) -> LLMResponse:
        system, turns = _split_system(messages)
        request: dict = {"model": self.model, "max_tokens": self.max_tokens, "messages": turns}
        if system:
            request["system"] = system
        if tools:
            request["tools"] = [t.as_input_schema_tool() for t in tools]

        response = await self._client.messages.create(**request)
        text = [b.text for b in response.content if b.type == "text"]
        calls = [
            ToolCall(id=b.id, name=b.name, arguments=b.input if isinstance(b.input, dict) else {})
            for b in response.content
            if b.type == "tool_use"
        ]
        return LLMResponse(
            content="\n".join(text),
            tool_calls=calls or None,
            usage=token_usage(response.usage.input_tokens, response.usage.output_tokens)
            if response.usage
            else None,
            stop_reason=response.stop_reason,
        )
