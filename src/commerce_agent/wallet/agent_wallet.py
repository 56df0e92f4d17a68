"""The agent's own wallet: one address on one network."""

from __future__ import annotations

import logging

from commerce_agent.errors import WalletError
from commerce_agent.wallet.chains import Chain, get_chain
from commerce_agent.wallet.keystore import (
    decrypt_key,
    dump_wallet_data,
    keystore_address,
    new_keystore,
    parse_wallet_data,
)

logger = logging.getLogger("commerce_agent.wallet.agent_wallet")


class AgentWallet:
    """Wallet capability backed by an encrypted keystore.

    Only the encrypted keystore and its password are held; the private key
    is decrypted on demand by :meth:`export_signing_material` and handed to
    the caller, which must not keep it.
    """

    def __init__(self, keystore: dict, password: str, network_id: str) -> None:
        try:
            self._chain = get_chain(network_id)
        except KeyError as exc:
            raise WalletError(str(exc)) from exc
        self._keystore = keystore
        self._password = password
        self._address = keystore_address(keystore)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create(cls, password: str, network_id: str) -> AgentWallet:
        """Create a wallet with a freshly generated key."""
        wallet = cls(new_keystore(password), password, network_id)
        logger.info("Created new wallet %s on %s", wallet._address, network_id)
        return wallet

    @classmethod
    def from_data(cls, blob: str, password: str, network_id: str) -> AgentWallet:
        """Restore a wallet from a persisted blob.

        The blob's own network id wins over *network_id*, which is only a
        fallback for blobs that don't record one.
        """
        data = parse_wallet_data(blob)
        return cls(data["keystore"], password, data.get("network_id") or network_id)

    def export_data(self) -> str:
        """Return the blob to persist for the next session."""
        return dump_wallet_data(self._keystore, self._chain.network_id)

    # ------------------------------------------------------------------
    # Capability
    # ------------------------------------------------------------------

    @property
    def network_id(self) -> str:
        return self._chain.network_id

    @property
    def chain(self) -> Chain:
        return self._chain

    def get_default_address(self) -> str:
        return self._address

    def export_signing_material(self) -> str:
        """Decrypt and return the private key as a 0x-prefixed hex string."""
        return "0x" + decrypt_key(self._keystore, self._password).hex()
