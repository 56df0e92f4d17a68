"""Run modes: interactive chat and the unattended autonomous loop.

Exactly one turn is in flight at a time; a turn's events are rendered in
order and fully consumed before the next input is read. Any error inside a
turn ends the loop with :class:`~commerce_agent.errors.FatalLoopError`
unless ``isolate_failures`` is set, in which case it is reported and the
loop carries on.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable

from rich.console import Console
from rich.markup import escape

from commerce_agent.core.events import AgentEvent, RunEvent
from commerce_agent.errors import FatalLoopError
from commerce_agent.llm.base import LLMMessage

if TYPE_CHECKING:
    from commerce_agent.core.agent import RunConfig, ToolCallingAgent

logger = logging.getLogger("commerce_agent.core.runner")

SEPARATOR = "-------------------"

InputReader = Callable[[str], str]


def render_event(console: Console, event: RunEvent) -> None:
    if isinstance(event, AgentEvent):
        console.print(event.content, markup=False, highlight=False)
    else:
        console.print(event.content, style="cyan", markup=False, highlight=False)
    console.print(SEPARATOR, style="dim")


async def run_turn(
    agent: ToolCallingAgent,
    text: str,
    config: RunConfig,
    console: Console,
) -> None:
    """Submit *text* as one turn and render its events to completion."""
    async for event in agent.stream([LLMMessage(role="user", content=text)], config):
        render_event(console, event)


async def _guarded_turn(
    agent: ToolCallingAgent,
    text: str,
    config: RunConfig,
    console: Console,
    isolate_failures: bool,
) -> None:
    try:
        await run_turn(agent, text, config, console)
    except Exception as exc:
        logger.error("Turn failed: %s", exc)
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        if not isolate_failures:
            raise FatalLoopError(str(exc)) from exc


async def run_chat_mode(
    agent: ToolCallingAgent,
    config: RunConfig,
    console: Console,
    read_input: InputReader | None = None,
    isolate_failures: bool = False,
) -> None:
    """Read prompts until ``exit`` (any case) or end of input."""
    read_input = read_input or console.input
    console.print("Starting chat mode... Type 'exit' to end.")

    while True:
        try:
            user_input = read_input("\nPrompt: ")
        except EOFError:
            break
        if user_input.lower() == "exit":
            break
        await _guarded_turn(agent, user_input, config, console, isolate_failures)

    console.print("[dim]Chat ended.[/dim]")


async def run_autonomous_mode(
    agent: ToolCallingAgent,
    config: RunConfig,
    console: Console,
    prompt: str,
    interval: float = 10.0,
    isolate_failures: bool = False,
    max_turns: int | None = None,
) -> None:
    """Submit *prompt* every *interval* seconds.

    Runs forever unless *max_turns* is given.
    """
    console.print("Starting autonomous mode...")
    turns = 0
    while max_turns is None or turns < max_turns:
        await _guarded_turn(agent, prompt, config, console, isolate_failures)
        turns += 1
        await asyncio.sleep(interval)


MODES = {"1": "chat", "chat": "chat", "2": "auto", "auto": "auto"}


def choose_mode(console: Console, read_input: InputReader | None = None) -> str:
    """Ask until the user picks ``chat`` or ``auto``."""
    read_input = read_input or console.input
    while True:
        console.print("\nAvailable modes:")
        console.print("1. chat    - Interactive chat mode")
        console.print("2. auto    - Autonomous action mode")
        choice = read_input("\nChoose a mode (enter number or name): ").strip().lower()
        mode = MODES.get(choice)
        if mode is not None:
            return mode
        console.print("[yellow]Invalid choice. Please try again.[/yellow]")
