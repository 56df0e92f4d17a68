"""Charge lifecycle, agent loop, run modes and session bootstrap."""

from commerce_agent.core.agent import ConversationMemory, RunConfig, ToolCallingAgent
from commerce_agent.core.charges import ChargeController, OnrampSettings, PaymentSettings
from commerce_agent.core.events import AgentEvent, RunEvent, ToolEvent

__all__ = [
    "AgentEvent",
    "ChargeController",
    "ConversationMemory",
    "OnrampSettings",
    "PaymentSettings",
    "RunConfig",
    "RunEvent",
    "ToolCallingAgent",
    "ToolEvent",
]
