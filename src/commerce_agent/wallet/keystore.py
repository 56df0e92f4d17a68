"""Encrypted keystore and wallet-data blob handling using eth-account.

The wallet-data blob is what gets persisted between sessions: a JSON
document holding the network id, the address and an encrypted keystore.
The raw private key is never written anywhere.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from eth_account import Account
from web3 import Web3

from commerce_agent.errors import WalletError

logger = logging.getLogger("commerce_agent.wallet.keystore")


def new_keystore(password: str) -> dict:
    """Generate a fresh keypair and return its encrypted keystore."""
    acct = Account.create()
    return Account.encrypt(acct.key, password)


def keystore_address(keystore: dict) -> str:
    """Read the checksummed address from a keystore without decrypting it."""
    raw_address = keystore.get("address", "")
    if not raw_address:
        raise WalletError("Keystore has no address field.")
    if not raw_address.startswith("0x"):
        raw_address = "0x" + raw_address
    return Web3.to_checksum_address(raw_address)


def decrypt_key(keystore: dict, password: str) -> bytes:
    """Decrypt the raw 32-byte private key from a keystore.

    Raises
    ------
    WalletError
        If the password is wrong or the keystore is corrupt.
    """
    try:
        return bytes(Account.decrypt(keystore, password))
    except (ValueError, KeyError, TypeError) as exc:
        raise WalletError(f"Failed to decrypt keystore: {exc}") from exc


def dump_wallet_data(keystore: dict, network_id: str) -> str:
    """Serialize a wallet into the persisted blob format."""
    return json.dumps(
        {
            "network_id": network_id,
            "address": keystore_address(keystore),
            "keystore": keystore,
        },
        indent=2,
    )


def parse_wallet_data(blob: str) -> dict:
    """Parse a persisted blob; raises ``WalletError`` when it is not one of ours."""
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as exc:
        raise WalletError(f"Wallet data is not valid JSON: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("keystore"), dict):
        raise WalletError("Wallet data has no keystore.")
    return data


def read_wallet_data(path: Path) -> str | None:
    """Return the persisted blob, or ``None`` if it is missing or unreadable.

    A read failure is not fatal: the session starts with a new wallet.
    """
    if not path.exists():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.warning("Error reading wallet data from %s: %s", path, exc)
        return None


def write_wallet_data(path: Path, blob: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(blob, encoding="utf-8")
