"""Tool registry - the operations the agent may invoke, each with a validated input schema."""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ValidationError

from commerce_agent.errors import DuplicateToolError, ToolValidationError, UnknownToolError
from commerce_agent.llm.base import ToolDefinition

logger = logging.getLogger("commerce_agent.tools.registry")


@dataclass
class Tool:
    name: str
    description: str
    args_schema: type[BaseModel]
    func: Callable[..., Any] | Callable[..., Awaitable[Any]]
    is_async: bool = field(init=False)

    def __post_init__(self) -> None:
        self.is_async = inspect.iscoroutinefunction(self.func)

    @property
    def parameters(self) -> dict[str, Any]:
        return self.args_schema.model_json_schema()

    def to_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description.strip(),
            parameters=self.parameters,
        )

    async def execute(self, **kwargs) -> str:
        if self.is_async:
            result = await self.func(**kwargs)
        else:
            result = self.func(**kwargs)
        if isinstance(result, str):
            return result
        return json.dumps(result, default=str)


class ToolRegistry:
    """Session-scoped, append-only set of tools."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise DuplicateToolError(f"A tool named '{tool.name}' is already registered.")
        self._tools[tool.name] = tool
        logger.debug("Registered tool %s", tool.name)

    def tool(self, name: str, description: str, args_schema: type[BaseModel]):
        """Decorator to register a function as a tool.

        Usage:
            @registry.tool("get_charges", GET_CHARGES_PROMPT, GetChargesInput)
            async def get_charges() -> str:
                ...
        """

        def decorator(func: Callable) -> Callable:
            self.register(Tool(name=name, description=description, args_schema=args_schema, func=func))
            return func

        return decorator

    def list_names(self) -> list[str]:
        return list(self._tools.keys())

    def definitions(self) -> list[ToolDefinition]:
        return [t.to_definition() for t in self._tools.values()]

    async def invoke(self, name: str, raw_input: dict[str, Any] | str | None = None) -> str:
        """Validate *raw_input* against the tool's schema, then run the tool.

        Raises
        ------
        UnknownToolError
            If no tool is registered under *name*.
        ToolValidationError
            If the input is malformed; the handler is not called.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(f"Unknown tool '{name}'. Available: {self.list_names()}")

        if isinstance(raw_input, str):
            try:
                raw_input = json.loads(raw_input) if raw_input.strip() else {}
            except json.JSONDecodeError as exc:
                raise ToolValidationError(
                    name, [{"loc": (), "msg": f"input is not valid JSON: {exc}"}]
                ) from exc

        try:
            args = tool.args_schema.model_validate(raw_input or {})
        except ValidationError as exc:
            raise ToolValidationError(name, exc.errors(include_url=False)) from exc

        logger.info("Calling tool %s(%s)", name, args.model_dump())
        return await tool.execute(**dict(args))
