"""Tools the agent can call, and the registry that validates their input."""

from commerce_agent.tools.registry import Tool, ToolRegistry

__all__ = ["Tool", "ToolRegistry"]
