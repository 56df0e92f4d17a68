"""Tool-calling agent: reason, call tools, repeat until the model answers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncIterator

from commerce_agent.core.events import AgentEvent, RunEvent, ToolEvent
from commerce_agent.llm.base import LLMMessage

if TYPE_CHECKING:
    from commerce_agent.llm.base import BaseLLMProvider, ToolCall
    from commerce_agent.tools.registry import ToolRegistry

logger = logging.getLogger("commerce_agent.core.agent")


@dataclass(frozen=True)
class RunConfig:
    """Per-run options; ``thread_id`` selects the conversation memory."""

    thread_id: str = "commerce-agent"


class ConversationMemory:
    """In-process message history, one list per thread id."""

    def __init__(self) -> None:
        self._threads: dict[str, list[LLMMessage]] = {}

    def history(self, thread_id: str) -> list[LLMMessage]:
        return self._threads.setdefault(thread_id, [])


class ToolCallingAgent:
    """Runs turns against an LLM provider with the tools of a registry.

    Each call to :meth:`stream` is one turn: the new messages are appended to
    the thread's memory, then the model is called repeatedly, executing any
    tool calls it requests, until it replies without tool calls or
    ``max_iterations`` completions have been made.

    With ``handle_tool_errors`` set, a failing tool's error is returned to the
    model as the tool result so it can recover; otherwise it propagates and
    ends the turn. Provider errors always propagate.
    """

    def __init__(
        self,
        provider: BaseLLMProvider,
        registry: ToolRegistry,
        system_prompt: str,
        max_iterations: int = 15,
        handle_tool_errors: bool = True,
        memory: ConversationMemory | None = None,
    ):
        self.provider = provider
        self.registry = registry
        self.system_prompt = system_prompt
        self.max_iterations = max_iterations
        self.handle_tool_errors = handle_tool_errors
        self.memory = memory or ConversationMemory()

    async def stream(
        self,
        messages: list[LLMMessage],
        config: RunConfig | None = None,
    ) -> AsyncIterator[RunEvent]:
        """Run one turn, yielding events in the order they happen.

        A turn that raises leaves the thread's memory as it was before the turn.
        """
        config = config or RunConfig()
        history = self.memory.history(config.thread_id)
        turn_start = len(history)
        history.extend(messages)
        try:
            async for event in self._run_turn(history):
                yield event
        except Exception:
            del history[turn_start:]
            raise

    async def _run_turn(self, history: list[LLMMessage]) -> AsyncIterator[RunEvent]:
        tools = self.registry.definitions()

        for _ in range(self.max_iterations):
            response = await self.provider.complete(
                messages=[LLMMessage(role="system", content=self.system_prompt), *history],
                tools=tools,
            )

            if not response.tool_calls:
                history.append(LLMMessage(role="assistant", content=response.content or ""))
                if response.content:
                    yield AgentEvent(content=response.content)
                return

            history.append(
                LLMMessage(
                    role="assistant",
                    content=response.content or "",
                    tool_calls=list(response.tool_calls),
                )
            )
            if response.content:
                yield AgentEvent(content=response.content)

            for tc in response.tool_calls:
                result = await self._execute_tool(tc)
                history.append(LLMMessage(role="tool", content=result, tool_call_id=tc.id))
                yield ToolEvent(content=result, name=tc.name)

        logger.warning("Turn stopped after %d iterations", self.max_iterations)
        yield AgentEvent(content="Stopped: exceeded maximum reasoning iterations.")

    async def _execute_tool(self, tc: ToolCall) -> str:
        try:
            return await self.registry.invoke(tc.name, tc.arguments)
        except Exception as exc:
            if not self.handle_tool_errors:
                raise
            logger.debug("Tool %s failed: %s", tc.name, exc)
            return f"Error: {exc}"
