"""
Tests for the tool-calling agent loop.
"""
import asyncio

import pytest
from pydantic import BaseModel

from commerce_agent.core.agent import ConversationMemory, RunConfig, ToolCallingAgent
from commerce_agent.core.events import AgentEvent, ToolEvent
from commerce_agent.errors import ToolValidationError
from commerce_agent.llm.base import LLMMessage, LLMResponse, ToolCall
from commerce_agent.tools.registry import ToolRegistry
from tests.fakes import ScriptedProvider


class ShoutInput(BaseModel):
    text: str


def _registry():
    registry = ToolRegistry()

    @registry.tool("shout", "Upper-case the text.", ShoutInput)
    def shout(text: str) -> str:
        return text.upper()

    return registry


def _collect(agent, text, config=None):
    async def run():
        return [e async for e in agent.stream([LLMMessage(role="user", content=text)], config)]

    return asyncio.run(run())


def test_plain_answer_yields_one_agent_event():
    provider = ScriptedProvider([LLMResponse(content="hello there")])
    agent = ToolCallingAgent(provider, _registry(), system_prompt="be nice")

    assert _collect(agent, "hi") == [AgentEvent("hello there")]
    sent = provider.calls[0]
    assert sent[0].role == "system" and sent[0].content == "be nice"
    assert sent[1].content == "hi"


def test_tool_call_then_answer():
    provider = ScriptedProvider([
        LLMResponse(content="", tool_calls=[ToolCall(id="t1", name="shout", arguments={"text": "pay"})]),
        LLMResponse(content="done shouting"),
    ])
    agent = ToolCallingAgent(provider, _registry(), system_prompt="")

    events = _collect(agent, "shout pay")

    assert events == [ToolEvent("PAY", name="shout"), AgentEvent("done shouting")]
    tool_message = provider.calls[1][-1]
    assert tool_message.role == "tool"
    assert tool_message.tool_call_id == "t1"
    assert tool_message.content == "PAY"


def test_tool_errors_returned_to_model():
    provider = ScriptedProvider([
        LLMResponse(content="", tool_calls=[ToolCall(id="t1", name="shout", arguments={})]),
        LLMResponse(content="sorry"),
    ])
    agent = ToolCallingAgent(provider, _registry(), system_prompt="")

    tool_event, answer = _collect(agent, "shout")

    assert tool_event.content.startswith("Error: Invalid input for tool 'shout'")
    assert answer == AgentEvent("sorry")


def test_tool_errors_propagate_when_not_handled():
    provider = ScriptedProvider([
        LLMResponse(content="", tool_calls=[ToolCall(id="t1", name="shout", arguments={})]),
    ])
    agent = ToolCallingAgent(provider, _registry(), system_prompt="", handle_tool_errors=False)

    with pytest.raises(ToolValidationError):
        _collect(agent, "shout")


def test_provider_errors_propagate():
    provider = ScriptedProvider([RuntimeError("rate limited")])
    agent = ToolCallingAgent(provider, _registry(), system_prompt="")

    with pytest.raises(RuntimeError):
        _collect(agent, "hi")


def test_iteration_limit():
    call = LLMResponse(content="", tool_calls=[ToolCall(id="t", name="shout", arguments={"text": "a"})])
    provider = ScriptedProvider([call, call, call])
    agent = ToolCallingAgent(provider, _registry(), system_prompt="", max_iterations=2)

    events = _collect(agent, "loop")

    assert len(provider.calls) == 2
    assert events[-1].content.startswith("Stopped")


def test_memory_is_kept_per_thread():
    memory = ConversationMemory()
    provider = ScriptedProvider([LLMResponse(content="one"), LLMResponse(content="two"), LLMResponse(content="three")])
    agent = ToolCallingAgent(provider, _registry(), system_prompt="", memory=memory)

    _collect(agent, "first", RunConfig(thread_id="a"))
    _collect(agent, "second", RunConfig(thread_id="a"))
    _collect(agent, "other", RunConfig(thread_id="b"))

    assert [m.content for m in memory.history("a")] == ["first", "one", "second", "two"]
    assert [m.content for m in memory.history("b")] == ["other", "three"]


def test_failed_turn_leaves_no_dangling_tool_call():
    memory = ConversationMemory()
    provider = ScriptedProvider([
        LLMResponse(content="one"),
        LLMResponse(content="", tool_calls=[ToolCall(id="t1", name="shout", arguments={})]),
    ])
    agent = ToolCallingAgent(provider, _registry(), system_prompt="", handle_tool_errors=False, memory=memory)

    _collect(agent, "first", RunConfig(thread_id="a"))
    with pytest.raises(ToolValidationError):
        _collect(agent, "shout", RunConfig(thread_id="a"))
    assert [m.content for m in memory.history("a")] == ["first", "one"]

    _collect(agent, "again", RunConfig(thread_id="a"))

    sent = provider.calls[-1]
    assert [m.role for m in sent] == ["system", "user", "assistant", "user"]
    assert not any(m.tool_calls for m in sent)
