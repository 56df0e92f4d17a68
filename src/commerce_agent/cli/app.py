"""CLI for Commerce Agent - run the on-chain commerce agent from the terminal."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from commerce_agent.config import AppConfig, DEFAULT_CONFIG_FILE, resolve_config, write_config_template
from commerce_agent.errors import FatalBootstrapError, FatalLoopError

app = typer.Typer(
    name="commerce-agent",
    help="An LLM agent that creates, hydrates and pays Coinbase Commerce charges.",
    no_args_is_help=True,
)
console = Console()

logger = logging.getLogger("commerce_agent.cli")

_config_path: Path | None = None


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        console.print(f"commerce-agent {version('commerce-agent')}")
        raise typer.Exit()


@app.callback()
def main(
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Config file (default: ./{DEFAULT_CONFIG_FILE}, else environment)",
        envvar="COMMERCE_AGENT_CONFIG",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """An LLM agent that creates, hydrates and pays Coinbase Commerce charges."""
    global _config_path
    _config_path = config
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )
    # Request lines from httpx are noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_config() -> AppConfig:
    try:
        return resolve_config(_config_path)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(1)


async def _run_session(config: AppConfig, mode: str | None, interval: float | None) -> None:
    from commerce_agent.core.runner import choose_mode, run_autonomous_mode, run_chat_mode
    from commerce_agent.core.session import initialize_session

    session = await initialize_session(config)
    try:
        if mode is None:
            mode = choose_mode(console)
        if mode == "chat":
            await run_chat_mode(
                session.agent,
                session.run_config,
                console,
                isolate_failures=config.agent.isolate_failures,
            )
        else:
            await run_autonomous_mode(
                session.agent,
                session.run_config,
                console,
                prompt=config.agent.autonomous_prompt,
                interval=interval if interval is not None else config.agent.interval_seconds,
                isolate_failures=config.agent.isolate_failures,
            )
    finally:
        await session.close()


def _start(mode: str | None, interval: float | None = None) -> None:
    config = _load_config()
    console.print("Starting Agent...")
    try:
        asyncio.run(_run_session(config, mode, interval))
    except FatalBootstrapError as exc:
        console.print(f"[red]Failed to initialize agent:[/red] {exc}")
        raise typer.Exit(1)
    except FatalLoopError:
        raise typer.Exit(1)


@app.command()
def run():
    """Ask for a mode (chat or auto), then start the agent."""
    _start(None)


@app.command()
def chat():
    """Start the agent in interactive chat mode."""
    _start("chat")


@app.command()
def auto(
    interval: float = typer.Option(
        None, "--interval", "-i", help="Seconds between autonomous actions (default: from config)"
    ),
):
    """Start the agent in autonomous mode."""
    _start("auto", interval)


@app.command()
def init(
    path: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILE), "--path", "-p", help="Where to write the config template"
    ),
):
    """Write a config template that reads its secrets from the environment."""
    try:
        write_config_template(path)
    except FileExistsError as exc:
        console.print(f"[yellow]{exc}[/yellow]")
        raise typer.Exit(1)

    console.print(Panel(
        f"[bold green]Config written to {path}[/bold green]\n\n"
        f"[dim]Set COINBASE_COMMERCE_KEY and an LLM API key (OPENAI_API_KEY,\n"
        f"XAI_API_KEY or ANTHROPIC_API_KEY) in your environment or a .env file,\n"
        f"then run 'commerce-agent run'.[/dim]",
        title="Commerce Agent",
    ))


@app.command()
def payments():
    """Show the charge payments submitted by the agent."""
    from commerce_agent.storage.database import Database

    config = _load_config()

    async def _payments():
        db = Database(config.storage.db_path)
        await db.connect()
        try:
            return await db.list_payments()
        finally:
            await db.close()

    rows = asyncio.run(_payments())
    if not rows:
        console.print("[dim]No payments recorded.[/dim]")
        return

    table = Table(title="Payments")
    table.add_column("Charge", style="cyan")
    table.add_column("Hydrated For", justify="right")
    table.add_column("Settled On", justify="right")
    table.add_column("Currency")
    table.add_column("Transaction", style="dim")
    table.add_column("When", style="dim")

    for p in rows:
        table.add_row(
            p["charge_id"],
            str(p["hydration_chain_id"]),
            str(p["settlement_chain_id"]),
            p["currency"],
            p["tx_hash"],
            str(p["created_at"]),
        )
    console.print(table)


# ------------------------------------------------------------------
# wallet sub-commands
# ------------------------------------------------------------------

wallet_app = typer.Typer(
    name="wallet",
    help="Inspect the agent's wallet.",
    no_args_is_help=True,
)
app.add_typer(wallet_app, name="wallet")


@wallet_app.command("address")
def wallet_address():
    """Show the agent wallet address (creating the wallet if none exists)."""
    from commerce_agent.core.session import load_wallet
    from commerce_agent.errors import WalletError
    from commerce_agent.wallet.keystore import write_wallet_data

    config = _load_config()
    try:
        wallet = load_wallet(config)
    except WalletError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    write_wallet_data(Path(config.wallet.data_file), wallet.export_data())

    chain = wallet.chain
    console.print(Panel(
        f"[cyan]{wallet.get_default_address()}[/cyan]\n\n"
        f"[dim]Network: {chain.network_id} (chain id {chain.chain_id})\n"
        f"Explorer: {chain.explorer_url}/address/{wallet.get_default_address()}[/dim]",
        title="Wallet Address",
    ))


if __name__ == "__main__":
    app()
