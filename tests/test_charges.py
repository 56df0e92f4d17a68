"""
Tests for the charge lifecycle controller.
"""
import asyncio
import logging

import pytest

from commerce_agent.commerce.models import ZERO_ADDRESS, SettlementCurrency
from commerce_agent.core.charges import ChargeController, PaymentSettings
from commerce_agent.errors import (
    CurrencyMismatchError,
    GatewayResponseError,
    PaymentError,
    WalletError,
)
from commerce_agent.storage.database import Database
from tests.fakes import TEST_ADDRESS, TEST_PRIV_KEY, TEST_TX_HASH, FakeGateway, FakeWallet


def test_create_charge_keeps_amount_and_currency(controller, gateway):
    charge = asyncio.run(controller.create_charge("Coffee", "Large coffee", "5.990", "USD", "fixed_price"))

    assert charge.local_price.amount == "5.990"
    assert charge.local_price.currency == "USD"
    assert gateway.charges[0].local_price.amount == "5.990"


def test_create_charge_rejects_unknown_pricing_type(controller, gateway):
    with pytest.raises(ValueError):
        asyncio.run(controller.create_charge("Coffee", "Large coffee", "5.99", "USD", "dynamic"))
    assert gateway.charges == []


def test_list_charges_empty(controller):
    assert asyncio.run(controller.list_charges()) == []


def test_list_charges_without_timeline(controller, gateway):
    from commerce_agent.commerce.models import Charge

    gateway.charges.append(Charge(id="c-empty", local_price={"amount": "1.00", "currency": "EUR"}))

    (summary,) = asyncio.run(controller.list_charges())

    assert summary.status is None
    assert str(summary) == "c-empty: 1.00 EUR | no status"


def test_hydrate_uses_wallet_address(controller, gateway):
    hydrated = asyncio.run(controller.hydrate_charge("c1", 8453))

    assert gateway.hydrations == [("c1", 8453, TEST_ADDRESS)]
    assert hydrated.chain_id == 8453
    assert hydrated.sender == TEST_ADDRESS


def test_pay_rehydrates_for_each_chain_id(controller, gateway):
    asyncio.run(controller.hydrate_charge("c1", 1))
    asyncio.run(controller.pay_charge("c1", 8453))
    asyncio.run(controller.pay_charge("c1", 8453))

    assert [h[1] for h in gateway.hydrations] == [1, 8453, 8453]
    assert len(gateway.payments) == 2


def test_pay_uses_settlement_currency_and_chain(controller, gateway):
    receipt = asyncio.run(controller.pay_charge("c1", 8453))

    payer, hydrated, currency, released_during_call = gateway.payments[0]
    assert currency == SettlementCurrency()
    assert payer.chain_id == 8453
    assert hydrated.chain_id == 8453
    assert released_during_call is False
    assert receipt.transaction_hash == TEST_TX_HASH


def test_pay_on_other_chain_fails_before_key_export(gateway, wallet):
    native = SettlementCurrency(contract_address=ZERO_ADDRESS, is_native=True, decimals=18, symbol="ETH")
    gateway.recipient_currency = ZERO_ADDRESS
    controller = ChargeController(gateway, wallet, payment=PaymentSettings(currency=native))

    with pytest.raises(PaymentError, match="chain 1"):
        asyncio.run(controller.pay_charge("c1", 1))

    assert gateway.hydrations[0][1] == 1
    assert wallet.exports == 0
    assert gateway.payments == []


def test_pay_on_configured_settlement_chain(gateway, wallet):
    controller = ChargeController(gateway, wallet, payment=PaymentSettings(settlement_chain_id=1))

    receipt = asyncio.run(controller.pay_charge("c1", 1))

    assert gateway.payments[0][0].chain_id == 1
    assert receipt.chain_id == 1


def test_payer_wallet_released_after_payment(controller, gateway, wallet):
    asyncio.run(controller.pay_charge("c1", 8453))

    payer = gateway.payments[0][0]
    assert payer.released
    assert wallet.exports == 1
    with pytest.raises(WalletError):
        payer.sign_transaction({})
    assert TEST_PRIV_KEY[2:] not in repr(payer)


def test_payer_wallet_released_when_payment_fails(controller, gateway):
    captured = []

    async def failing_pay(wallet, charge, currency):
        captured.append(wallet)
        raise PaymentError("reverted")

    gateway.pay_charge = failing_pay

    with pytest.raises(PaymentError):
        asyncio.run(controller.pay_charge("c1", 8453))
    assert captured[0].released


def test_currency_mismatch_fails_before_key_export(wallet):
    gateway = FakeGateway(recipient_currency=ZERO_ADDRESS)
    controller = ChargeController(gateway, wallet)

    with pytest.raises(CurrencyMismatchError):
        asyncio.run(controller.pay_charge("c1", 8453))
    assert wallet.exports == 0
    assert gateway.payments == []


def test_native_settlement_accepts_zero_address(wallet):
    gateway = FakeGateway(recipient_currency=ZERO_ADDRESS)
    native = SettlementCurrency(contract_address=ZERO_ADDRESS, is_native=True, decimals=18, symbol="ETH")
    controller = ChargeController(gateway, wallet, payment=PaymentSettings(currency=native))

    asyncio.run(controller.pay_charge("c1", 8453))
    assert gateway.payments[0][2] == native


def test_hydration_failure_propagates_without_payment(controller, gateway, wallet, caplog):
    gateway.fail_with = GatewayResponseError("PUT /charges/c1/hydrate returned 404: not found", status_code=404)

    with caplog.at_level(logging.ERROR, logger="commerce_agent.core.charges"):
        with pytest.raises(GatewayResponseError):
            asyncio.run(controller.pay_charge("c1", 8453))

    assert wallet.exports == 0
    assert gateway.payments == []
    assert len([r for r in caplog.records if r.levelno == logging.ERROR]) == 1


def test_key_material_never_logged(controller, caplog):
    with caplog.at_level(logging.DEBUG):
        asyncio.run(controller.pay_charge("c1", 8453))

    assert TEST_PRIV_KEY[2:] not in caplog.text


def test_key_material_not_retained_on_controller(controller):
    asyncio.run(controller.pay_charge("c1", 8453))

    for value in vars(controller).values():
        assert TEST_PRIV_KEY not in repr(value)


def test_funding_link_rejected_on_testnet(gateway, monkeypatch):
    import commerce_agent.core.charges as charges_module

    def _unexpected(*args, **kwargs):
        raise AssertionError("no URL should be built on a test network")

    monkeypatch.setattr(charges_module, "build_funding_link", _unexpected)
    controller = ChargeController(gateway, FakeWallet("base-sepolia"))

    assert controller.create_funding_link().startswith("Error:")


def test_funding_link_on_mainnet(controller):
    result = controller.create_funding_link("base")

    assert "https://pay.coinbase.com/buy/select-asset?" in result
    assert f"Wallet Address: {TEST_ADDRESS}" in result


def test_payments_recorded_in_ledger(gateway, wallet):
    async def scenario():
        db = Database(":memory:")
        await db.connect()
        try:
            controller = ChargeController(gateway, wallet, db=db)
            await controller.pay_charge("c1", 8453)
            return await controller.list_payments()
        finally:
            await db.close()

    (payment,) = asyncio.run(scenario())
    assert payment["charge_id"] == "c1"
    assert payment["hydration_chain_id"] == 8453
    assert payment["settlement_chain_id"] == 8453
    assert payment["currency"] == "USDC"
    assert payment["tx_hash"] == TEST_TX_HASH


def test_ledger_failure_still_returns_receipt(gateway, wallet, caplog):
    async def scenario():
        db = Database(":memory:")
        await db.connect()
        await db.close()
        controller = ChargeController(gateway, wallet, db=db)
        return await controller.pay_charge("c1", 8453)

    with caplog.at_level(logging.ERROR, logger="commerce_agent.core.charges"):
        receipt = asyncio.run(scenario())

    assert receipt.transaction_hash == TEST_TX_HASH
    assert len(gateway.payments) == 1
    assert TEST_TX_HASH in caplog.text


def test_list_payments_without_ledger(controller):
    assert asyncio.run(controller.list_payments()) == []


def test_webhooks(controller):
    asyncio.run(controller.create_webhook("https://example.com/hook"))
    (hook,) = asyncio.run(controller.list_webhooks())
    assert hook.url == "https://example.com/hook"
