"""LLM provider abstraction layer.

A common set of message and tool structures plus adapters for
OpenAI-compatible endpoints (OpenAI, xAI) and Anthropic.
"""

from commerce_agent.llm.base import (
    BaseLLMProvider,
    LLMMessage,
    LLMResponse,
    ToolCall,
    ToolDefinition,
)
from commerce_agent.llm.router import LLMRouter

__all__ = [
    "BaseLLMProvider",
    "LLMMessage",
    "LLMResponse",
    "LLMRouter",
    "ToolCall",
    "ToolDefinition",
]
