"""Agent-facing wallet tools: address lookup and native balance.

Neither tool can move funds; paying a charge goes through ``pay_charge``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from commerce_agent.tools.registry import ToolRegistry
    from commerce_agent.wallet.agent_wallet import AgentWallet
    from commerce_agent.wallet.provider import Web3Provider

logger = logging.getLogger("commerce_agent.tools.wallet")

GET_WALLET_DETAILS_PROMPT = """
This tool returns your wallet's address and the network it is on.
"""

GET_BALANCE_PROMPT = """
This tool returns your wallet's native token balance on its network.
"""


class GetWalletDetailsInput(BaseModel):
    pass


class GetBalanceInput(BaseModel):
    pass


def register_wallet_tools(
    registry: ToolRegistry,
    wallet: AgentWallet,
    web3_provider: Web3Provider,
) -> None:
    @registry.tool("get_wallet_details", GET_WALLET_DETAILS_PROMPT, GetWalletDetailsInput)
    def get_wallet_details() -> str:
        chain = wallet.chain
        return (
            "Wallet details:\n"
            f"  Address: {wallet.get_default_address()}\n"
            f"  Network: {chain.network_id} (chain id {chain.chain_id})\n"
            f"  Explorer: {chain.explorer_url}/address/{wallet.get_default_address()}"
        )

    @registry.tool("get_balance", GET_BALANCE_PROMPT, GetBalanceInput)
    def get_balance() -> str:
        chain = wallet.chain
        balance = web3_provider.get_native_balance(wallet.get_default_address(), chain.chain_id)
        return f"Balance on {chain.network_id}: {balance} {chain.native_symbol}"
