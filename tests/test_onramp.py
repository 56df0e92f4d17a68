"""
Tests for funding link construction.
"""
import asyncio
import json
from urllib.parse import parse_qs, urlparse

from commerce_agent.core.charges import ChargeController, OnrampSettings
from commerce_agent.core.onramp import build_funding_link
from commerce_agent.tools.commerce_tools import register_commerce_tools
from commerce_agent.tools.registry import ToolRegistry
from tests.fakes import TEST_ADDRESS, FakeWallet


def test_build_funding_link_encodes_addresses():
    url = build_funding_link("https://pay.coinbase.com/buy/select-asset", "app-123", TEST_ADDRESS, "base")

    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert parsed.netloc == "pay.coinbase.com"
    assert parsed.path == "/buy/select-asset"
    assert query["appId"] == ["app-123"]
    assert json.loads(query["addresses"][0]) == {TEST_ADDRESS: ["base"]}


def test_addresses_json_is_compact():
    url = build_funding_link("https://pay.test", "", TEST_ADDRESS, "base")
    raw = parse_qs(urlparse(url).query)["addresses"][0]
    assert raw == f'{{"{TEST_ADDRESS}":["base"]}}'


def test_pay_link_tool_default_blockchain(gateway):
    controller = ChargeController(
        gateway,
        FakeWallet("base-mainnet"),
        onramp=OnrampSettings(base_url="https://pay.test/buy", app_id="app-1"),
    )
    registry = ToolRegistry()
    register_commerce_tools(registry, controller)

    result = asyncio.run(registry.invoke("create_pay_link", {}))

    url = result.split("URL: ", 1)[1].split()[0]
    assert json.loads(parse_qs(urlparse(url).query)["addresses"][0]) == {TEST_ADDRESS: ["base"]}


def test_pay_link_tool_on_testnet(gateway):
    controller = ChargeController(gateway, FakeWallet("base-sepolia"))
    registry = ToolRegistry()
    register_commerce_tools(registry, controller)

    result = asyncio.run(registry.invoke("create_pay_link", {"blockchain": "base"}))

    assert result.startswith("Error:")
    assert "https://" not in result
