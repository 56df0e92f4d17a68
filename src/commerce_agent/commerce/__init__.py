"""Commerce gateway: charge models, the REST client, and on-chain transfers."""

from commerce_agent.commerce.client import CommerceClient
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

__all__ = [
    "Charge",
    "ChargeRequest",
    "ChargeSummary",
    "Checkout",
    "CheckoutRequest",
    "CommerceClient",
    "HydratedCharge",
    "LocalPrice",
    "PaymentReceipt",
    "SettlementCurrency",
    "Webhook",
]
