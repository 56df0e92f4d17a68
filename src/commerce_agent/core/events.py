"""Events emitted by one agent turn."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class AgentEvent:
    """Reasoning output: text the model produced."""

    content: str


@dataclass(frozen=True)
class ToolEvent:
    """The output of one tool invocation."""

    content: str
    name: str = ""


RunEvent = Union[AgentEvent, ToolEvent]
