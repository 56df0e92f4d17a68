"""Agent-facing commerce tools.

Each tool validates its input through a pydantic schema before the handler
runs, delegates to the :class:`~commerce_agent.core.charges.ChargeController`
and formats the result as text for the model. Errors are not caught here;
they propagate to the agent, which decides how to surface them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from commerce_agent.commerce.models import LocalPrice, validate_amount

if TYPE_CHECKING:
    from commerce_agent.core.charges import ChargeController
    from commerce_agent.tools.rate_limiter import RateLimiter
    from commerce_agent.tools.registry import ToolRegistry

logger = logging.getLogger("commerce_agent.tools.commerce")

CHARGES_LIMIT_KEY = "charges_daily"
CHECKOUTS_LIMIT_KEY = "checkouts_daily"


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

CREATE_CHARGE_PROMPT = """
This tool creates a new charge using the Coinbase Commerce API.
Use this when you need to create a new payment request or invoice.
The charge will generate a hosted checkout page that can be shared with customers.
"""

GET_CHARGES_PROMPT = """
This tool lists the charges created on the Coinbase Commerce account,
with each charge's amount, currency and latest status.
"""

HYDRATE_CHARGE_PROMPT = """
This tool prepares an existing charge for on-chain payment from your wallet
on the given chain (chain id, e.g. 8453 for Base). It returns the payment
instructions issued for that chain; it does not move any funds.
"""

PAY_CHARGE_PROMPT = """
This tool pays an existing charge from your wallet. The charge is hydrated for
the given chain id, which must be the settlement chain (8453 for Base), and the
payment is settled in USDC.
Use it only when you have been asked to pay a charge.
"""

CREATE_CHECKOUT_PROMPT = """
This tool creates a reusable Coinbase Commerce checkout (a product page).
Use 'fixed_price' with an amount and currency, or 'no_price' to let the
customer choose the amount.
"""

CREATE_WEBHOOK_PROMPT = """
This tool registers a webhook URL that Coinbase Commerce will notify about
charge events.
"""

GET_WEBHOOKS_PROMPT = """
This tool lists the webhooks registered on the Coinbase Commerce account.
"""

CREATE_PAY_LINK_PROMPT = """
This tool creates a Coinbase Onramp link that allows users to purchase crypto and send it directly to a specified wallet address.
The link will open Coinbase Onramp with the wallet address pre-filled.
Use this tool if you don't have enough funds to complete a certain action.
"""

LIST_PAYMENTS_PROMPT = """
This tool lists the charge payments you have submitted from your wallet,
with their transaction hashes.
"""


# ---------------------------------------------------------------------------
# Input schemas
# ---------------------------------------------------------------------------


class CreateChargeInput(BaseModel):
    name: str = Field(description="Name/title of the charge e.g. 'Coffee Purchase'")
    description: str = Field(
        description="Description of what is being charged for e.g. 'Large coffee with extra shot'"
    )
    amount: str = Field(description="Price amount as string e.g. '5.99'")
    currency: str = Field(description="Three letter currency code e.g. 'USD'")
    pricing_type: Literal["fixed_price", "no_price"] = Field(
        description="Pricing type - usually 'fixed_price'"
    )

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, value: str) -> str:
        return validate_amount(value)


class GetChargesInput(BaseModel):
    pass


class ChargeOnChainInput(BaseModel):
    charge_id: str = Field(description="ID of the charge e.g. '7b5f8a3c-...'")
    chain_id: int = Field(gt=0, description="Numeric chain id e.g. 8453 for Base")


class CreateCheckoutInput(BaseModel):
    name: str = Field(description="Name of the product e.g. 'Monthly Coffee Club'")
    description: str = Field(description="Description of the product")
    pricing_type: Literal["fixed_price", "no_price"] = Field(
        description="'fixed_price' requires amount and currency; 'no_price' lets the customer choose"
    )
    amount: Optional[str] = Field(default=None, description="Price amount as string e.g. '5.99'")
    currency: Optional[str] = Field(default=None, description="Three letter currency code e.g. 'USD'")
    requested_info: list[Literal["name", "email"]] = Field(
        default_factory=list,
        description="Customer details to collect at checkout",
    )

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, value: Optional[str]) -> Optional[str]:
        return value if value is None else validate_amount(value)


class CreateWebhookInput(BaseModel):
    url: str = Field(description="HTTPS URL to notify e.g. 'https://example.com/hooks/commerce'")


class GetWebhooksInput(BaseModel):
    pass


class CreatePayLinkInput(BaseModel):
    blockchain: str = Field(default="base", description="Blockchain network (defaults to 'base')")


class ListPaymentsInput(BaseModel):
    pass


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_commerce_tools(
    registry: ToolRegistry,
    controller: ChargeController,
    limiter: RateLimiter | None = None,
) -> None:
    """Register every commerce tool on *registry*, bound to *controller*."""

    def _limited(key: str, what: str) -> str | None:
        if limiter is not None and not limiter.check(key):
            logger.warning("Rate limit reached for %s", key)
            return f"Rate limit exceeded: daily {what} limit reached. Try again later."
        return None

    @registry.tool("create_charge", CREATE_CHARGE_PROMPT, CreateChargeInput)
    async def create_charge(
        name: str, description: str, amount: str, currency: str, pricing_type: str
    ) -> str:
        refused = _limited(CHARGES_LIMIT_KEY, "charge")
        if refused:
            return refused
        charge = await controller.create_charge(name, description, amount, currency, pricing_type)
        if limiter is not None:
            limiter.record(CHARGES_LIMIT_KEY)
        price = charge.local_price or LocalPrice(amount=amount, currency=currency)
        return (
            "Successfully created charge:\n"
            f"  ID: {charge.id}\n"
            f"  Name: {charge.name}\n"
            f"  Description: {charge.description}\n"
            f"  Amount: {price.amount} {price.currency}\n"
            f"  Hosted URL: {charge.hosted_url}"
        )

    @registry.tool("get_charges", GET_CHARGES_PROMPT, GetChargesInput)
    async def get_charges() -> str:
        summaries = await controller.list_charges()
        if not summaries:
            return "No charges found."
        return "Charges:\n" + "\n".join(f"  {s}" for s in summaries)

    @registry.tool("hydrate_charge", HYDRATE_CHARGE_PROMPT, ChargeOnChainInput)
    async def hydrate_charge(charge_id: str, chain_id: int) -> str:
        hydrated = await controller.hydrate_charge(charge_id, chain_id)
        lines = [
            f"Hydrated charge {hydrated.id} for chain {hydrated.chain_id}:",
            f"  Sender: {hydrated.sender}",
        ]
        intent = hydrated.web3_data.get("transfer_intent")
        if intent:
            lines.append(f"  Transfers contract: {intent.get('metadata', {}).get('contract_address')}")
        return "\n".join(lines)

    @registry.tool("pay_charge", PAY_CHARGE_PROMPT, ChargeOnChainInput)
    async def pay_charge(charge_id: str, chain_id: int) -> str:
        receipt = await controller.pay_charge(charge_id, chain_id)
        return (
            f"Paid charge {receipt.charge_id}:\n"
            f"  Settlement chain: {receipt.chain_id}\n"
            f"  Transaction: {receipt.transaction_hash}"
        )

    @registry.tool("create_checkout", CREATE_CHECKOUT_PROMPT, CreateCheckoutInput)
    async def create_checkout(
        name: str,
        description: str,
        pricing_type: str,
        amount: str | None = None,
        currency: str | None = None,
        requested_info: list[str] | None = None,
    ) -> str:
        if pricing_type == "fixed_price" and (amount is None or currency is None):
            return "Error: a fixed_price checkout needs both amount and currency."
        refused = _limited(CHECKOUTS_LIMIT_KEY, "checkout")
        if refused:
            return refused
        checkout = await controller.create_checkout(
            name, description, pricing_type, amount, currency, requested_info
        )
        if limiter is not None:
            limiter.record(CHECKOUTS_LIMIT_KEY)
        price = str(checkout.local_price) if checkout.local_price else "customer chooses"
        return (
            "Successfully created checkout:\n"
            f"  ID: {checkout.id}\n"
            f"  Name: {checkout.name}\n"
            f"  Price: {price}"
        )

    @registry.tool("create_webhook", CREATE_WEBHOOK_PROMPT, CreateWebhookInput)
    async def create_webhook(url: str) -> str:
        webhook = await controller.create_webhook(url)
        return f"Created webhook {webhook.id} for {webhook.url}"

    @registry.tool("get_webhooks", GET_WEBHOOKS_PROMPT, GetWebhooksInput)
    async def get_webhooks() -> str:
        webhooks = await controller.list_webhooks()
        if not webhooks:
            return "No webhooks registered."
        return "Webhooks:\n" + "\n".join(f"  {w.id}: {w.url}" for w in webhooks)

    @registry.tool("create_pay_link", CREATE_PAY_LINK_PROMPT, CreatePayLinkInput)
    def create_pay_link(blockchain: str = "base") -> str:
        return controller.create_funding_link(blockchain)

    @registry.tool("list_payments", LIST_PAYMENTS_PROMPT, ListPaymentsInput)
    async def list_payments() -> str:
        payments = await controller.list_payments()
        if not payments:
            return "No payments recorded."
        return "Payments:\n" + "\n".join(
            f"  {p['charge_id']}: chain {p['hydration_chain_id']} -> "
            f"{p['currency']} on {p['settlement_chain_id']} | tx {p['tx_hash']}"
            for p in payments
        )
