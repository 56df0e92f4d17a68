"""Charge lifecycle: create, hydrate, pay - plus the other merchant operations.

Gateway failures are logged here, once, and re-raised unchanged. Nothing in
this module retries; whether to try again is up to the agent.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from commerce_agent.commerce.models import (
    Charge,
    ChargeRequest,
    ChargeSummary,
    Checkout,
    CheckoutRequest,
    HydratedCharge,
    LocalPrice,
    PaymentReceipt,
    SettlementCurrency,
    Webhook,
)
from commerce_agent.core.onramp import build_funding_link
from commerce_agent.errors import CommerceAgentError, CurrencyMismatchError, PaymentError
from commerce_agent.wallet.payer import PayerWallet

if TYPE_CHECKING:
    from commerce_agent.commerce.client import CommerceClient
    from commerce_agent.config import OnrampConfig
    from commerce_agent.storage.database import Database
    from commerce_agent.wallet.agent_wallet import AgentWallet

logger = logging.getLogger("commerce_agent.core.charges")


@dataclass(frozen=True)
class PaymentSettings:
    """Where and in what token charges are paid.

    ``settlement_chain_id`` scopes the payer wallet; only charges hydrated for
    that chain can be paid.
    """

    settlement_chain_id: int = 8453
    currency: SettlementCurrency = field(default_factory=SettlementCurrency)


@dataclass(frozen=True)
class OnrampSettings:
    base_url: str = "https://pay.coinbase.com/buy/select-asset"
    app_id: str = ""

    @classmethod
    def from_config(cls, config: OnrampConfig) -> OnrampSettings:
        return cls(base_url=config.base_url, app_id=config.app_id)


class ChargeController:
    """Coordinates the commerce gateway, the agent wallet and the settlement currency.

    Parameters
    ----------
    gateway:
        The commerce gateway client.
    wallet:
        The agent's wallet; supplies the sender address and, for the
        duration of one payment, the signing key.
    payment:
        Settlement chain and currency.
    onramp:
        Funding-link parameters.
    db:
        Optional payment ledger; when given, every submitted payment is recorded.
    """

    def __init__(
        self,
        gateway: CommerceClient,
        wallet: AgentWallet,
        payment: PaymentSettings | None = None,
        onramp: OnrampSettings | None = None,
        db: Database | None = None,
    ) -> None:
        self._gateway = gateway
        self._wallet = wallet
        self._payment = payment or PaymentSettings()
        self._onramp = onramp or OnrampSettings()
        self._db = db

    # ------------------------------------------------------------------
    # Charges
    # ------------------------------------------------------------------

    async def create_charge(
        self,
        name: str,
        description: str,
        amount: str,
        currency: str,
        pricing_type: str,
    ) -> Charge:
        """Create a charge. Raises ``ValueError`` on an unknown pricing type or bad amount."""
        request = ChargeRequest(
            name=name,
            description=description,
            pricing_type=pricing_type,
            local_price=LocalPrice(amount=amount, currency=currency),
        )
        try:
            charge = await self._gateway.create_charge(request)
        except CommerceAgentError as exc:
            logger.error("Error creating charge: %s", exc)
            raise
        logger.info("Created charge %s (%s %s)", charge.id, amount, currency)
        return charge

    async def list_charges(self) -> list[ChargeSummary]:
        try:
            charges = await self._gateway.get_charges()
        except CommerceAgentError as exc:
            logger.error("Error listing charges: %s", exc)
            raise
        return [ChargeSummary.from_charge(c) for c in charges]

    async def hydrate_charge(self, charge_id: str, chain_id: int) -> HydratedCharge:
        """Bind *charge_id* to *chain_id* and the wallet's default address.

        Never cached: instructions are specific to chain and sender.
        """
        try:
            sender = self._wallet.get_default_address()
            hydrated = await self._gateway.hydrate_charge(charge_id, chain_id, sender)
        except CommerceAgentError as exc:
            logger.error("Error hydrating charge %s for chain %s: %s", charge_id, chain_id, exc)
            raise
        logger.info("Hydrated charge %s for chain %s (sender %s)", charge_id, chain_id, sender)
        return hydrated

    async def pay_charge(self, charge_id: str, chain_id: int) -> PaymentReceipt:
        """Hydrate *charge_id* for *chain_id* and pay it from the agent wallet.

        The signing key is exported only after hydration succeeded and the
        settlement currency and chain matched, and lives only inside this call.
        """
        hydrated = await self.hydrate_charge(charge_id, chain_id)
        currency = self._payment.currency

        try:
            intent = hydrated.transfer_intent
        except ValueError as exc:
            logger.error("Charge %s cannot be paid: %s", charge_id, exc)
            raise PaymentError(f"Charge {charge_id} cannot be paid: {exc}") from exc
        if not currency.matches(intent.call_data.recipient_currency):
            exc = CurrencyMismatchError(
                f"Charge {charge_id} settles in {intent.call_data.recipient_currency}, "
                f"not in {currency.symbol} ({currency.contract_address})"
            )
            logger.error("Error paying charge %s: %s", charge_id, exc)
            raise exc
        settlement_chain_id = self._payment.settlement_chain_id
        if intent.metadata.chain_id != settlement_chain_id:
            exc = PaymentError(
                f"Charge {charge_id} was hydrated for chain {intent.metadata.chain_id}, "
                f"but payments settle on chain {settlement_chain_id}"
            )
            logger.error("Error paying charge %s: %s", charge_id, exc)
            raise exc

        try:
            with PayerWallet(
                self._wallet.export_signing_material(),
                chain_id=settlement_chain_id,
            ) as payer:
                receipt = await self._gateway.pay_charge(payer, hydrated, currency)
        except CommerceAgentError as exc:
            logger.error("Error paying charge %s: %s", charge_id, exc)
            raise

        logger.info("Paid charge %s: tx=%s", charge_id, receipt.transaction_hash)
        await self._record_payment(hydrated, receipt)
        return receipt

    async def _record_payment(self, hydrated: HydratedCharge, receipt: PaymentReceipt) -> None:
        """Write *receipt* to the ledger; failures are logged with the tx hash, not raised."""
        if self._db is None:
            return
        try:
            await self._db.record_payment(
                payment_id=uuid.uuid4().hex[:12],
                charge_id=receipt.charge_id,
                hydration_chain_id=hydrated.chain_id,
                settlement_chain_id=receipt.chain_id,
                sender=hydrated.sender,
                currency=self._payment.currency.symbol,
                tx_hash=receipt.transaction_hash,
            )
        except Exception:
            logger.exception(
                "Paid charge %s (tx=%s) but could not record it in the ledger",
                receipt.charge_id,
                receipt.transaction_hash,
            )

    async def list_payments(self) -> list[dict]:
        """Payments recorded in the ledger, newest first."""
        if self._db is None:
            return []
        return await self._db.list_payments()

    # ------------------------------------------------------------------
    # Checkouts and webhooks
    # ------------------------------------------------------------------

    async def create_checkout(
        self,
        name: str,
        description: str,
        pricing_type: str,
        amount: str | None = None,
        currency: str | None = None,
        requested_info: list[str] | None = None,
    ) -> Checkout:
        local_price = None
        if amount is not None and currency is not None:
            local_price = LocalPrice(amount=amount, currency=currency)
        request = CheckoutRequest(
            name=name,
            description=description,
            pricing_type=pricing_type,
            local_price=local_price,
            requested_info=requested_info or [],
        )
        try:
            checkout = await self._gateway.create_checkout(request)
        except CommerceAgentError as exc:
            logger.error("Error creating checkout: %s", exc)
            raise
        logger.info("Created checkout %s", checkout.id)
        return checkout

    async def create_webhook(self, url: str) -> Webhook:
        try:
            webhook = await self._gateway.create_webhook(url)
        except CommerceAgentError as exc:
            logger.error("Error creating webhook for %s: %s", url, exc)
            raise
        logger.info("Created webhook %s -> %s", webhook.id, webhook.url)
        return webhook

    async def list_webhooks(self) -> list[Webhook]:
        try:
            return await self._gateway.get_webhooks()
        except CommerceAgentError as exc:
            logger.error("Error listing webhooks: %s", exc)
            raise

    # ------------------------------------------------------------------
    # Funding link
    # ------------------------------------------------------------------

    def create_funding_link(self, blockchain: str = "base") -> str:
        """Return an onramp link for the wallet, or a policy message on test networks."""
        if self._wallet.chain.is_testnet:
            return (
                f"Error: wallet is on the {self._wallet.network_id} test network; "
                "request funds from the faucet instead."
            )

        address = self._wallet.get_default_address()
        url = build_funding_link(self._onramp.base_url, self._onramp.app_id, address, blockchain)
        return (
            f"Generated funding link:\n"
            f"  URL: {url}\n"
            f"\n"
            f"This link lets users purchase crypto and send it directly to the wallet:\n"
            f"  Wallet Address: {address}\n"
            f"  Blockchain: {blockchain}"
        )
