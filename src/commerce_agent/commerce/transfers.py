"""On-chain submission of hydrated charges.

A hydrated charge carries a signed ``TransferIntent`` for the Commerce
Transfers contract. Paying it means calling that contract from the payer's
address: ``transferNative`` when settling in the chain's native asset, or
``transferTokenPreApproved`` after an ERC-20 approval otherwise.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from web3 import Web3

from commerce_agent.errors import CurrencyMismatchError, PaymentError

if TYPE_CHECKING:
    from commerce_agent.commerce.models import HydratedCharge, SettlementCurrency
    from commerce_agent.wallet.payer import PayerWallet
    from commerce_agent.wallet.provider import Web3Provider

logger = logging.getLogger("commerce_agent.commerce.transfers")

_TRANSFER_INTENT_COMPONENTS = [
    {"name": "recipientAmount", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
    {"name": "recipient", "type": "address"},
    {"name": "recipientCurrency", "type": "address"},
    {"name": "refundDestination", "type": "address"},
    {"name": "feeAmount", "type": "uint256"},
    {"name": "id", "type": "bytes16"},
    {"name": "operator", "type": "address"},
    {"name": "signature", "type": "bytes"},
    {"name": "prefix", "type": "bytes"},
]

TRANSFERS_ABI = [
    {
        "name": name,
        "type": "function",
        "stateMutability": mutability,
        "inputs": [
            {
                "name": "_intent",
                "type": "tuple",
                "components": _TRANSFER_INTENT_COMPONENTS,
            }
        ],
        "outputs": [],
    }
    for name, mutability in (
        ("transferNative", "payable"),
        ("transferTokenPreApproved", "nonpayable"),
    )
]

ERC20_ABI = [
    {
        "name": "allowance",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "approve",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
]


class TransferSubmitter:
    """Builds and broadcasts the Transfers contract call for a hydrated charge."""

    def __init__(self, provider: Web3Provider, approval_timeout: float = 120.0) -> None:
        self._provider = provider
        self._approval_timeout = approval_timeout

    def submit(
        self,
        payer: PayerWallet,
        charge: HydratedCharge,
        currency: SettlementCurrency,
    ) -> str:
        """Pay *charge* from *payer* in *currency*; returns the transaction hash."""
        try:
            intent = charge.transfer_intent
        except ValueError as exc:
            raise PaymentError(f"Charge {charge.id} cannot be paid: {exc}") from exc

        call = intent.call_data
        if not currency.matches(call.recipient_currency):
            raise CurrencyMismatchError(
                f"Charge {charge.id} settles in {call.recipient_currency}, "
                f"but the settlement currency is {currency.symbol} "
                f"({currency.contract_address})"
            )
        if intent.metadata.chain_id != payer.chain_id:
            raise PaymentError(
                f"Charge {charge.id} was hydrated for chain {intent.metadata.chain_id}, "
                f"but the payer wallet is on chain {payer.chain_id}"
            )

        w3 =self._provider.get_web3(payer.chain_id)
        contract = w3.eth.contract(
            address=Web3.to_checksum_address(intent.metadata.contract_address),
            abi=TRANSFERS_ABI,
        )
        args = call.as_contract_args()

        if currency.is_native:
            fn = contract.functions.transferNative(args)
            value = call.total_amount
        else:
            self._ensure_allowance(payer, currency, contract.address, call.total_amount)
            fn = contract.functions.transferTokenPreApproved(args)
            value = 0

        tx = fn.build_transaction({"from": payer.address, "value": value})
        tx_hash = self._provider.send(payer, tx)
        logger.info("Submitted payment for charge %s: tx=%s", charge.id, tx_hash)
        return tx_hash

    def _ensure_allowance(
        self,
        payer: PayerWallet,
        currency: SettlementCurrency,
        spender: str,
        amount: int,
    ) -> None:
        """Approve *spender* for *amount* of the token unless already allowed."""
        w3 = self._provider.get_web3(payer.chain_id)
        token = w3.eth.contract(
            address=Web3.to_checksum_address(currency.contract_address),
            abi=ERC20_ABI,
        )
        allowance = token.functions.allowance(payer.address, spender).call()
        if allowance >= amount:
            return

        tx = token.functions.approve(spender, amount).build_transaction({"from": payer.address})
        tx_hash = self._provider.send(payer, tx)
        receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self._approval_timeout)
        if receipt.get("status") != 1:
            raise PaymentError(f"{currency.symbol} approval transaction {tx_hash} reverted")
        logger.info("Approved %s %s for %s (tx=%s)", amount, currency.symbol, spender, tx_hash)
