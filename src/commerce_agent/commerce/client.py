"""Coinbase Commerce gateway client.

Talks to the Commerce REST API directly via httpx. Every call is one-shot:
failures surface as :class:`~commerce_agent.errors.GatewayError` subclasses
and are never retried here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from commerce_agent.commerce.models import (
    Charge,
    ChargeRequest,
    Checkout,
    CheckoutRequest,
    HydratedCharge,
    PaymentReceipt,
    SettlementCurrency,
    Webhook,
)
from commerce_agent.errors import (
    GatewayConnectionError,
    GatewayResponseError,
    GatewayTimeoutError,
)

if TYPE_CHECKING:
    from commerce_agent.commerce.transfers import TransferSubmitter
    from commerce_agent.config import CommerceConfig
    from commerce_agent.wallet.payer import PayerWallet

logger = logging.getLogger("commerce_agent.commerce.client")


class CommerceClient:
    """Gateway capability: charges, checkouts, webhooks, and charge payment.

    Parameters
    ----------
    config:
        The ``commerce`` config section (API key, base URL, RPC URL).
    submitter:
        Submits hydrated transfer intents on-chain for :meth:`pay_charge`.
    transport:
        Optional httpx transport, used by tests to stub the API.
    """

    def __init__(
        self,
        config: CommerceConfig,
        submitter: TransferSubmitter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = config
        self._submitter = submitter
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "X-CC-Api-Key": config.api_key,
                "X-CC-Version": config.api_version,
            },
            timeout=config.timeout_seconds,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, json: dict | None = None) -> Any:
        """Send one request and return the ``data`` member of the response body."""
        logger.debug("%s %s", method, path)
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.TimeoutException as exc:
            raise GatewayTimeoutError(f"{method} {path} timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise GatewayConnectionError(f"{method} {path} failed: {exc}") from exc

        try:
            body = resp.json()
        except ValueError:
            body = resp.text

        if resp.status_code >= 400:
            message = resp.reason_phrase
            if isinstance(body, dict):
                message = (body.get("error") or {}).get("message") or message
            raise GatewayResponseError(
                f"{method} {path} returned {resp.status_code}: {message}",
                status_code=resp.status_code,
                body=body,
            )

        if not isinstance(body, dict) or "data" not in body:
            raise GatewayResponseError(
                f"{method} {path} returned a malformed body",
                status_code=resp.status_code,
                body=body,
            )
        return body["data"]

    def _parse(self, model, data: Any, what: str):
        try:
            return model.model_validate(data)
        except ValueError as exc:
            raise GatewayResponseError(f"Unexpected {what} payload: {exc}", body=data) from exc

    # ------------------------------------------------------------------
    # Charges
    # ------------------------------------------------------------------

    async def create_charge(self, request: ChargeRequest) -> Charge:
        data = await self._request("POST", "/charges", json=request.model_dump())
        return self._parse(Charge, data, "charge")

    async def get_charges(self) -> list[Charge]:
        data = await self._request("GET", "/charges")
        if not isinstance(data, list):
            raise GatewayResponseError("Charge listing is not a list", body=data)
        return [self._parse(Charge, item, "charge") for item in data]

    async def hydrate_charge(self, charge_id: str, chain_id: int, sender: str) -> HydratedCharge:
        data = await self._request(
            "PUT",
            f"/charges/{charge_id}/hydrate",
            json={"chain_id": chain_id, "sender": sender},
        )
        if not isinstance(data, dict):
            raise GatewayResponseError("Hydrated charge is not an object", body=data)
        return self._parse(
            HydratedCharge,
            {**data, "chain_id": chain_id, "sender": sender},
            "hydrated charge",
        )

    async def pay_charge(
        self,
        wallet: PayerWallet,
        charge: HydratedCharge,
        currency: SettlementCurrency,
    ) -> PaymentReceipt:
        """Submit the hydrated charge's transfer intent from *wallet*."""
        if self._submitter is None:
            raise RuntimeError("CommerceClient was built without a transfer submitter.")
        tx_hash = self._submitter.submit(wallet, charge, currency)
        return PaymentReceipt(
            charge_id=charge.id,
            chain_id=wallet.chain_id,
            transaction_hash=tx_hash,
        )

    # ------------------------------------------------------------------
    # Checkouts and webhooks
    # ------------------------------------------------------------------

    async def create_checkout(self, request: CheckoutRequest) -> Checkout:
        data = await self._request(
            "POST", "/checkouts", json=request.model_dump(exclude_none=True)
        )
        return self._parse(Checkout, data, "checkout")

    async def create_webhook(self, url: str) -> Webhook:
        data = await self._request("POST", "/webhooks", json={"url": url})
        return self._parse(Webhook, data, "webhook")

    async def get_webhooks(self) -> list[Webhook]:
        data = await self._request("GET", "/webhooks")
        if not isinstance(data, list):
            raise GatewayResponseError("Webhook listing is not a list", body=data)
        return [self._parse(Webhook, item, "webhook") for item in data]
