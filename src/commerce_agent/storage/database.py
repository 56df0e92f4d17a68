"""Async SQLite payment ledger.

Uses ``aiosqlite`` for non-blocking access with WAL mode and dictionary-style
row results. Only facts about submitted payments are stored here; wallet
secrets never are.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

import aiosqlite


class Database:
    """Thin async wrapper around an SQLite database.

    Parameters
    ----------
    db_path:
        Filesystem path to the SQLite database file. The file (and any
        intermediate directories) are created on :meth:`connect`. Pass
        ``":memory:"`` for a throwaway database.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        self._conn: Optional[aiosqlite.Connection] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection, enable WAL mode, and run migrations."""
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(str(self.db_path))
        await self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.row_factory = sqlite3.Row
        await self._migrate()

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    async def execute(self, sql: str, params: tuple = ()) -> aiosqlite.Cursor:
        """Execute a SQL statement and commit."""
        assert self._conn is not None, "Database not connected. Call connect() first."
        cursor = await self._conn.execute(sql, params)
        await self._conn.commit()
        return cursor

    async def fetch_all(self, sql: str, params: tuple = ()) -> list[dict]:
        assert self._conn is not None, "Database not connected. Call connect() first."
        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def record_payment(
        self,
        payment_id: str,
        charge_id: str,
        hydration_chain_id: int,
        settlement_chain_id: int,
        sender: str,
        currency: str,
        tx_hash: str,
    ) -> None:
        await self.execute(
            "INSERT INTO payments "
            "(id, charge_id, hydration_chain_id, settlement_chain_id, sender, currency, tx_hash) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (payment_id, charge_id, hydration_chain_id, settlement_chain_id, sender, currency, tx_hash),
        )

    async def list_payments(self) -> list[dict]:
        """All recorded payments, newest first."""
        return await self.fetch_all("SELECT * FROM payments ORDER BY created_at DESC, rowid DESC")

    # ------------------------------------------------------------------
    # Migrations
    # ------------------------------------------------------------------

    async def _migrate(self) -> None:
        assert self._conn is not None

        await self._conn.executescript(
            """\
            CREATE TABLE IF NOT EXISTS payments (
                id TEXT PRIMARY KEY,
                charge_id TEXT NOT NULL,
                hydration_chain_id INTEGER NOT NULL,
                settlement_chain_id INTEGER NOT NULL,
                sender TEXT NOT NULL,
                currency TEXT NOT NULL,
                tx_hash TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE INDEX IF NOT EXISTS idx_payments_charge ON payments (charge_id);
            """
        )
        await self._conn.commit()

