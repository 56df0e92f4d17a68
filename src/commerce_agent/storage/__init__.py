"""Storage layer -- async SQLite payment ledger."""

from commerce_agent.storage.database import Database

__all__ = ["Database"]
