"""Provider-neutral data structures shared by every LLM backend."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class LLMMessage:
    """One chat message.

    ``role`` is ``system``, ``user``, ``assistant`` or ``tool``. Assistant
    messages may carry the ``tool_calls`` the model requested; tool messages
    carry the ``tool_call_id`` they answer.
    """

    role: str
    content: str
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None


@dataclass
class ToolDefinition:
    """A tool as advertised to the model: name, prompt, JSON schema."""

    name: str
    description: str
    parameters: dict[str, Any]

    def as_chat_function(self) -> dict[str, Any]:
        """Chat Completions ``tools`` entry."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def as_input_schema_tool(self) -> dict[str, Any]:
        """Anthropic Messages ``tools`` entry."""
        return {"name": self.name, "description": self.description, "input_schema": self.parameters}


@dataclass
class LLMResponse:
    content: str
    tool_calls: list[ToolCall] | None = None
    usage: dict[str, int] | None = None
    stop_reason: str | None = None


def token_usage(input_tokens: int, output_tokens: int) -> dict[str, int]:
    return {"input_tokens": input_tokens, "output_tokens": output_tokens}


class BaseLLMProvider(ABC):
    """Common interface for chat-completion backends with tool calling.

    Subclasses implement :meth:`_create`; :meth:`complete` logs a failed call
    once under the provider's ``label`` and re-raises it.
    """

    label = "LLM"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens

    def _client_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"api_key": self.api_key}
        if self.base_url:
            kwargs["base_url"] = self.base_url
        return kwargs

    async def complete(
        self,
        messages: list[LLMMessage],
        tools: list[ToolDefinition] | None = None,
    ) -> LLMResponse:
        """Run one completion and return text plus any requested tool calls."""
        try:
            return await self._create(messages, tools or [])
        except Exception as exc:
            logger.error("%s API call failed: %s", self.label, exc)
            raise

    @abstractmethod
    async def _create(self, messages: list[LLMMessage], tools: list[ToolDefinition]) -> LLMResponse:
        ...
