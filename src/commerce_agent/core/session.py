"""Session bootstrap: wallet, gateway, ledger, tools and agent, built once per process."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from commerce_agent.commerce.client import CommerceClient
from commerce_agent.commerce.transfers import TransferSubmitter
from commerce_agent.core.agent import RunConfig, ToolCallingAgent
from commerce_agent.core.charges import ChargeController, OnrampSettings, PaymentSettings
from commerce_agent.errors import FatalBootstrapError
from commerce_agent.llm.router import LLMRouter
from commerce_agent.storage.database import Database
from commerce_agent.tools.commerce_tools import (
    CHARGES_LIMIT_KEY,
    CHECKOUTS_LIMIT_KEY,
    register_commerce_tools,
)
from commerce_agent.tools.rate_limiter import RateLimiter
from commerce_agent.tools.registry import ToolRegistry
from commerce_agent.tools.wallet_tools import register_wallet_tools
from commerce_agent.wallet.agent_wallet import AgentWallet
from commerce_agent.wallet.keystore import read_wallet_data, write_wallet_data
from commerce_agent.wallet.provider import Web3Provider

if TYPE_CHECKING:
    from commerce_agent.config import AppConfig
    from commerce_agent.llm.base import BaseLLMProvider

logger = logging.getLogger("commerce_agent.core.session")


@dataclass
class Session:
    """Everything a run loop needs, plus the resources to release afterwards."""

    config: AppConfig
    wallet: AgentWallet
    client: CommerceClient
    controller: ChargeController
    registry: ToolRegistry
    agent: ToolCallingAgent
    db: Database
    run_config: RunConfig = field(default_factory=RunConfig)

    async def close(self) -> None:
        await self.client.close()
        await self.db.close()


def load_wallet(config: AppConfig) -> AgentWallet:
    """Restore the wallet from its data file, or create a new one.

    A missing or unreadable file means a new wallet; a file that exists but
    cannot be parsed raises, so an existing wallet is never overwritten.
    """
    blob = read_wallet_data(Path(config.wallet.data_file))
    if blob is None:
        return AgentWallet.create(config.wallet.password, config.wallet.network_id)
    return AgentWallet.from_data(blob, config.wallet.password, config.wallet.network_id)


async def initialize_session(
    config: AppConfig,
    provider: BaseLLMProvider | None = None,
) -> Session:
    """Build a ready-to-run session.

    Any failure is re-raised as :class:`FatalBootstrapError`; no partial
    session is returned.
    """
    db: Database | None = None
    client: CommerceClient | None = None
    try:
        if provider is None:
            provider = LLMRouter(config.llm).get_provider()

        wallet = load_wallet(config)
        logger.info("Wallet %s on %s", wallet.get_default_address(), wallet.network_id)

        settlement_chain_id = config.payment.settlement_chain_id
        rpc_overrides = {}
        if config.commerce.rpc_url:
            rpc_overrides[settlement_chain_id] = config.commerce.rpc_url
        web3_provider = Web3Provider(rpc_overrides)

        client = CommerceClient(config.commerce, submitter=TransferSubmitter(web3_provider))

        db = Database(config.storage.db_path)
        await db.connect()

        controller = ChargeController(
            client,
            wallet,
            payment=PaymentSettings(
                settlement_chain_id=settlement_chain_id,
                currency=config.payment.currency,
            ),
            onramp=OnrampSettings.from_config(config.onramp),
            db=db,
        )

        limiter = RateLimiter()
        limiter.configure(CHARGES_LIMIT_KEY, config.rate_limits.charges_per_day)
        limiter.configure(CHECKOUTS_LIMIT_KEY, config.rate_limits.checkouts_per_day)

        registry = ToolRegistry()
        register_commerce_tools(registry, controller, limiter)
        register_wallet_tools(registry, wallet, web3_provider)

        agent = ToolCallingAgent(
            provider,
            registry,
            system_prompt=config.agent.system_prompt,
            max_iterations=config.agent.max_iterations,
            handle_tool_errors=config.agent.handle_tool_errors,
        )

        write_wallet_data(Path(config.wallet.data_file), wallet.export_data())
    except Exception as exc:
        logger.error("Failed to initialize agent: %s", exc)
        if client is not None:
            await client.close()
        if db is not None:
            await db.close()
        raise FatalBootstrapError(str(exc)) from exc

    logger.info("Session ready with %d tools", len(registry))
    return Session(
        config=config,
        wallet=wallet,
        client=client,
        controller=controller,
        registry=registry,
        agent=agent,
        db=db,
        run_config=RunConfig(thread_id=config.agent.thread_id),
    )
