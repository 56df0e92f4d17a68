"""
Tests for the agent wallet, keystore blobs and the transient payer wallet.
"""
import json

import pytest
from eth_account import Account

from commerce_agent.errors import WalletError
from commerce_agent.wallet.agent_wallet import AgentWallet
from commerce_agent.wallet.chains import get_chain, get_chain_by_id
from commerce_agent.wallet.keystore import read_wallet_data, write_wallet_data
from commerce_agent.wallet.payer import PayerWallet
from tests.fakes import TEST_PRIV_KEY


@pytest.fixture(scope="module")
def agent_wallet():
    return AgentWallet.create("s3cret", "base-mainnet")


def test_wallet_round_trip(agent_wallet):
    blob = agent_wallet.export_data()
    restored = AgentWallet.from_data(blob, "s3cret", "base-sepolia")

    assert restored.get_default_address() == agent_wallet.get_default_address()
    assert restored.network_id == "base-mainnet"


def test_blob_holds_no_plaintext_key(agent_wallet):
    key = agent_wallet.export_signing_material()
    blob = agent_wallet.export_data()

    assert key[2:] not in blob
    assert json.loads(blob)["address"] == agent_wallet.get_default_address()


def test_signing_material_matches_address(agent_wallet):
    key = agent_wallet.export_signing_material()
    assert key.startswith("0x") and len(key) == 66
    assert Account.from_key(key).address == agent_wallet.get_default_address()


def test_wrong_password(agent_wallet):
    restored = AgentWallet.from_data(agent_wallet.export_data(), "wrong", "base-mainnet")
    with pytest.raises(WalletError):
        restored.export_signing_material()


def test_corrupt_blob():
    with pytest.raises(WalletError):
        AgentWallet.from_data("not json", "pw", "base-mainnet")


def test_unknown_network():
    with pytest.raises(WalletError):
        AgentWallet({"address": "00" * 20}, "pw", "moon-mainnet")


def test_wallet_data_file(tmp_path):
    path = tmp_path / "wallet_data.txt"
    assert read_wallet_data(path) is None
    write_wallet_data(path, '{"keystore": {}}')
    assert read_wallet_data(path) == '{"keystore": {}}'


def test_payer_wallet_scope():
    with PayerWallet(TEST_PRIV_KEY, chain_id=8453) as payer:
        assert not payer.released
        signed = payer.sign_transaction({
            "to": "0x" + "22" * 20,
            "value": 0,
            "gas": 21000,
            "gasPrice": 1,
            "nonce": 0,
            "chainId": 8453,
        })
        assert signed is not None

    assert payer.released
    with pytest.raises(WalletError):
        payer.sign_transaction({})
    assert TEST_PRIV_KEY[2:] not in repr(payer)


def test_payer_wallet_invalid_key():
    with pytest.raises(WalletError):
        PayerWallet("0x1234", chain_id=8453)


def test_chain_lookup():
    assert get_chain("base-sepolia").is_testnet
    assert get_chain_by_id(8453).network_id == "base-mainnet"
    with pytest.raises(KeyError):
        get_chain_by_id(999999)
