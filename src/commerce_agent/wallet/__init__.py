"""Wallet support for the commerce agent.

The agent owns a single eth-account key stored as an encrypted keystore.
The key is only decrypted for the duration of a payment, inside a
:class:`~commerce_agent.wallet.payer.PayerWallet`.
"""
