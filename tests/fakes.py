"""
Fakes shared by the commerce agent tests.
"""
from __future__ import annotations

from commerce_agent.commerce.models import (
    USDC_BASE_ADDRESS,
    Charge,
    Checkout,
    HydratedCharge,
    PaymentReceipt,
    Webhook,
)
from commerce_agent.llm.base import BaseLLMProvider, LLMResponse
from commerce_agent.wallet.chains import get_chain

TEST_PRIV_KEY = "0x" + "11" * 32
TEST_ADDRESS = "0x19E7E376E7C213B7E7e7e46cc70A5dD086DAff2A"
TEST_TX_HASH = "0x" + "ab" * 32
TRANSFERS_CONTRACT = "0xeADE6bE02d043b3550bE19E960504dbA14A14971"


def make_transfer_intent(recipient_currency: str = USDC_BASE_ADDRESS, chain_id: int = 8453) -> dict:
    return {
        "call_data": {
            "recipient_amount": "5990000",
            "deadline": "2030-01-01T00:00:00Z",
            "recipient": "0x" + "22" * 20,
            "recipient_currency": recipient_currency,
            "refund_destination": TEST_ADDRESS,
            "fee_amount": "59900",
            "id": "0x" + "33" * 16,
            "operator": "0x" + "44" * 20,
            "signature": "0x" + "55" * 65,
            "prefix": "0x",
        },
        "metadata": {
            "chain_id": chain_id,
            "contract_address": TRANSFERS_CONTRACT,
            "sender": TEST_ADDRESS,
        },
    }


class FakeGateway:
    """In-memory stand-in for CommerceClient that records every call."""

    def __init__(self, recipient_currency: str = USDC_BASE_ADDRESS):
        self.recipient_currency = recipient_currency
        self.charges: list[Charge] = []
        self.hydrations: list[tuple[str, int, str]] = []
        self.payments: list[tuple] = []
        self.webhooks: list[Webhook] = []
        self.checkouts: list = []
        self.fail_with: Exception | None = None

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def create_charge(self, request):
        self._maybe_fail()
        charge = Charge(
            id=f"charge-{len(self.charges) + 1}",
            name=request.name,
            description=request.description,
            pricing_type=request.pricing_type,
            local_price=request.local_price,
            hosted_url=f"https://commerce.coinbase.com/pay/charge-{len(self.charges) + 1}",
            timeline=[{"status": "NEW", "time": "2024-01-01T00:00:00Z"}],
        )
        self.charges.append(charge)
        return charge

    async def get_charges(self):
        self._maybe_fail()
        return list(self.charges)

    async def hydrate_charge(self, charge_id, chain_id, sender):
        self._maybe_fail()
        self.hydrations.append((charge_id, chain_id, sender))
        return HydratedCharge(
            id=charge_id,
            chain_id=chain_id,
            sender=sender,
            web3_data={"transfer_intent": make_transfer_intent(self.recipient_currency, chain_id)},
        )

    async def pay_charge(self, wallet, charge, currency):
        self._maybe_fail()
        self.payments.append((wallet, charge, currency, wallet.released))
        return PaymentReceipt(
            charge_id=charge.id,
            chain_id=wallet.chain_id,
            transaction_hash=TEST_TX_HASH,
        )

    async def create_checkout(self, request):
        self._maybe_fail()
        self.checkouts.append(request)
        return Checkout(
            id=f"checkout-{len(self.checkouts)}",
            name=request.name,
            description=request.description,
            pricing_type=request.pricing_type,
            local_price=request.local_price,
        )

    async def create_webhook(self, url):
        self._maybe_fail()
        webhook = Webhook(id=f"hook-{len(self.webhooks) + 1}", url=url)
        self.webhooks.append(webhook)
        return webhook

    async def get_webhooks(self):
        self._maybe_fail()
        return list(self.webhooks)


class FakeWallet:
    """Agent wallet with a fixed key; counts key exports."""

    def __init__(self, network_id: str = "base-mainnet"):
        self.network_id = network_id
        self.chain = get_chain(network_id)
        self.exports = 0

    def get_default_address(self) -> str:
        return TEST_ADDRESS

    def export_signing_material(self) -> str:
        self.exports += 1
        return TEST_PRIV_KEY


class ScriptedProvider(BaseLLMProvider):
    """LLM provider that replays a fixed list of responses."""

    def __init__(self, responses: list[LLMResponse]):
        super().__init__(api_key="test", model="scripted")
        self.responses = list(responses)
        self.calls: list[list] = []

    async def _create(self, messages, tools):
        self.calls.append(list(messages))
        if not self.responses:
            return LLMResponse(content="done")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


