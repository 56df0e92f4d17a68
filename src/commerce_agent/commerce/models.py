"""Pydantic models for commerce gateway objects."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from web3 import Web3


PricingType = Literal["fixed_price", "no_price"]

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# USDC on Base mainnet
USDC_BASE_ADDRESS = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


# ---------------------------------------------------------------------------
# Charges
# ---------------------------------------------------------------------------


def validate_amount(value: str) -> str:
    """Check that *value* is a non-negative decimal string and return it unchanged."""
    try:
        parsed = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"amount must be a decimal string, got {value!r}") from exc
    if not parsed.is_finite() or parsed < 0:
        raise ValueError(f"amount must be a non-negative decimal, got {value!r}")
    return value


class LocalPrice(BaseModel):
    """A decimal amount in a fiat or crypto currency, kept as the exact string given."""

    amount: str
    currency: str

    @field_validator("amount")
    @classmethod
    def _amount_is_decimal(cls, value: str) -> str:
        return validate_amount(value)

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"


class ChargeRequest(BaseModel):
    """Body of a ``POST /charges`` request."""

    name: str
    description: str
    pricing_type: PricingType
    local_price: LocalPrice


class TimelineEntry(BaseModel):
    status: str
    time: Optional[str] = None


class Charge(BaseModel):
    """A merchant-issued payment request as returned by the gateway."""

    id: str
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    pricing_type: Optional[str] = None
    local_price: Optional[LocalPrice] = None
    hosted_url: Optional[str] = None
    timeline: list[TimelineEntry] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _lift_local_pricing(cls, data: Any) -> Any:
        # The API nests the merchant's price under pricing.local
        if isinstance(data, dict) and not data.get("local_price"):
            local = (data.get("pricing") or {}).get("local")
            if local:
                data = {**data, "local_price": local}
        return data

    @property
    def latest_status(self) -> Optional[str]:
        """Status of the most recent timeline event, or ``None`` for an empty timeline."""
        if not self.timeline:
            return None
        return self.timeline[-1].status


class ChargeSummary(BaseModel):
    """One line of a charge listing."""

    id: str
    amount: Optional[str] = None
    currency: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_charge(cls, charge: Charge) -> ChargeSummary:
        price = charge.local_price
        return cls(
            id=charge.id,
            amount=price.amount if price else None,
            currency=price.currency if price else None,
            status=charge.latest_status,
        )

    def __str__(self) -> str:
        price = f"{self.amount} {self.currency}" if self.amount is not None else "no price"
        return f"{self.id}: {price} | {self.status or 'no status'}"


# ---------------------------------------------------------------------------
# Hydration / on-chain payment data
# ---------------------------------------------------------------------------


class TransferCallData(BaseModel):
    """Arguments of the Transfers contract call, as issued by the gateway."""

    recipient_amount: int
    deadline: int
    recipient: str
    recipient_currency: str
    refund_destination: str
    fee_amount: int
    id: str
    operator: str
    signature: str
    prefix: str

    @field_validator("deadline", mode="before")
    @classmethod
    def _deadline_to_unix(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.isdigit():
            return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())
        return value

    def as_contract_args(self) -> tuple:
        """Return the ``TransferIntent`` struct tuple in ABI field order."""
        return (
            self.recipient_amount,
            self.deadline,
            Web3.to_checksum_address(self.recipient),
            Web3.to_checksum_address(self.recipient_currency),
            Web3.to_checksum_address(self.refund_destination),
            self.fee_amount,
            bytes.fromhex(self.id.removeprefix("0x")),
            Web3.to_checksum_address(self.operator),
            bytes.fromhex(self.signature.removeprefix("0x")),
            bytes.fromhex(self.prefix.removeprefix("0x")),
        )

    @property
    def total_amount(self) -> int:
        return self.recipient_amount + self.fee_amount


class TransferMetadata(BaseModel):
    chain_id: int
    contract_address: str
    sender: Optional[str] = None


class TransferIntent(BaseModel):
    call_data: TransferCallData
    metadata: TransferMetadata


class HydratedCharge(Charge):
    """A charge bound to one chain and one sender, ready to be paid."""

    chain_id: int
    sender: str
    web3_data: dict[str, Any] = Field(default_factory=dict)

    @property
    def transfer_intent(self) -> TransferIntent:
        raw = self.web3_data.get("transfer_intent")
        if not raw:
            raise ValueError(f"Charge {self.id} carries no transfer intent")
        return TransferIntent.model_validate(raw)


class SettlementCurrency(BaseModel):
    """The token a payment is settled in. Defaults to USDC on Base."""

    model_config = ConfigDict(frozen=True)

    contract_address: str = USDC_BASE_ADDRESS
    is_native: bool = False
    decimals: int = 6
    symbol: str = "USDC"

    def matches(self, token_address: str) -> bool:
        """Return True if *token_address* designates this currency."""
        expected = ZERO_ADDRESS if self.is_native else self.contract_address
        return token_address.lower() == expected.lower()


class PaymentReceipt(BaseModel):
    charge_id: str
    chain_id: int
    transaction_hash: str


# ---------------------------------------------------------------------------
# Checkouts and webhooks
# ---------------------------------------------------------------------------


class CheckoutRequest(BaseModel):
    """Body of a ``POST /checkouts`` request."""

    name: str
    description: str
    pricing_type: PricingType
    local_price: Optional[LocalPrice] = None
    requested_info: list[str] = Field(default_factory=list)


class Checkout(BaseModel):
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    pricing_type: Optional[str] = None
    local_price: Optional[LocalPrice] = None


class Webhook(BaseModel):
    id: str
    url: str
    created_at: Optional[str] = None
