"""Transient signing context used for exactly one payment."""

from __future__ import annotations

from eth_account import Account

from commerce_agent.errors import WalletError


class PayerWallet:
    """Signs transactions for one chain until released.

    Build it from freshly exported key material and use it as a context
    manager; leaving the ``with`` block drops the account so the key cannot
    be used (or leaked through this object) afterwards.
    """

    def __init__(self, private_key: str, chain_id: int) -> None:
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError) as exc:
            raise WalletError("Exported signing material is not a valid key.") from exc
        self.chain_id = chain_id
        self.address = self._account.address

    def __enter__(self) -> PayerWallet:
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"PayerWallet(address={self.address!r}, chain_id={self.chain_id})"

    @property
    def released(self) -> bool:
        return self._account is None

    def release(self) -> None:
        self._account = None

    def sign_transaction(self, tx: dict):
        if self._account is None:
            raise WalletError("PayerWallet was used after release.")
        return self._account.sign_transaction(tx)
