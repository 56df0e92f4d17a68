"""Web3 connections for the chains the agent pays on."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from commerce_agent.wallet.chains import get_chain_by_id

if TYPE_CHECKING:
    from commerce_agent.wallet.payer import PayerWallet

logger = logging.getLogger("commerce_agent.wallet.provider")


class Web3Provider:
    """Manages Web3 connections keyed by chain id.

    Parameters
    ----------
    rpc_overrides:
        Chain id to RPC URL; chains not listed use their public endpoint.
    """

    def __init__(self, rpc_overrides: dict[int, str] | None = None) -> None:
        self._rpc_overrides = dict(rpc_overrides or {})
        self._instances: dict[int, Web3] = {}

    def get_web3(self, chain_id: int) -> Web3:
        """Return a (cached) Web3 instance for *chain_id*.

        Injects POA middleware for every chain except Ethereum mainnet.
        """
        if chain_id in self._instances:
            return self._instances[chain_id]

        rpc_url = self._rpc_overrides.get(chain_id) or get_chain_by_id(chain_id).rpc_url
        w3 = Web3(Web3.HTTPProvider(rpc_url))
        if chain_id != 1:
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

        self._instances[chain_id] = w3
        return w3

    def get_native_balance(self, address: str, chain_id: int) -> Decimal:
        """Get the native token balance in human-readable units (e.g. ETH)."""
        w3 = self.get_web3(chain_id)
        balance_wei = w3.eth.get_balance(Web3.to_checksum_address(address))
        return Decimal(str(Web3.from_wei(balance_wei, "ether")))

    def send(self, payer: PayerWallet, tx: dict) -> str:
        """Fill in nonce, fees and gas where missing, sign with *payer*, and broadcast.

        Uses EIP-1559 fee parameters with a legacy gas price fallback.
        Returns the 0x-prefixed transaction hash.
        """
        w3 = self.get_web3(payer.chain_id)
        tx = dict(tx)
        tx.setdefault("from", payer.address)
        tx.setdefault("chainId", payer.chain_id)
        if "nonce" not in tx:
            tx["nonce"] = w3.eth.get_transaction_count(payer.address, "pending")

        if "maxFeePerGas" not in tx and "gasPrice" not in tx:
            latest = w3.eth.get_block("latest")
            base_fee = latest.get("baseFeePerGas")
            if base_fee is not None:
                max_priority = Web3.to_wei(1.5, "gwei")
                tx["maxFeePerGas"] = base_fee * 2 + max_priority
                tx["maxPriorityFeePerGas"] = max_priority
            else:
                tx["gasPrice"] = w3.eth.gas_price
        if "gas" not in tx:
            tx["gas"] = w3.eth.estimate_gas(tx)

        signed = payer.sign_transaction(tx)
        tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)
