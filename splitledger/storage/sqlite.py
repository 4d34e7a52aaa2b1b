# splitledger/storage/sqlite.py
import os
import sqlite3
import json
from pathlib import Path
from typing import List, Optional

from splitledger.core.types import LedgerEvent
from splitledger.core.canon import canonical_json, event_hash
from . import EventStore


class SQLiteEventStore(EventStore):
    """SQLite persistent storage for ledger audit trails."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            env_path = os.environ.get("SPLITLEDGER_DB_PATH")
            db_path = env_path if env_path else Path.cwd() / "splitledger.db"

        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = self.db_path.resolve()

        self._conn: Optional[sqlite3.Connection] = None
        self._connect()

    def _connect(self):
        self._conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_schema()

    def _create_schema(self):
        # amounts are TEXT: ledger integers are unbounded, SQLite INTEGER is 64-bit
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS events (
                ledger_id       TEXT    NOT NULL,
                sequence        INTEGER NOT NULL,
                kind            TEXT    NOT NULL,
                account         TEXT    NOT NULL,
                amount          TEXT    NOT NULL,
                timestamp       TEXT    NOT NULL,
                prev_hash       TEXT    NOT NULL,
                event_hash      TEXT    NOT NULL,
                canonical_json  TEXT    NOT NULL,
                PRIMARY KEY (ledger_id, sequence)
            )
        """)
        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_timestamp ON events(ledger_id, timestamp)")
        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_account   ON events(account)")

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Storage connection is closed")
        return self._conn

    def append(self, event: LedgerEvent) -> None:
        canon_str = canonical_json(event.to_dict()).decode("utf-8")
        try:
            self.conn.execute("""
                INSERT INTO events
                (ledger_id, sequence, kind, account, amount, timestamp,
                 prev_hash, event_hash, canonical_json)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                event.ledger_id, event.sequence, event.kind, event.account,
                str(event.amount), event.timestamp, event.prev_hash,
                event_hash(event), canon_str,
            ))
        except sqlite3.IntegrityError as e:
            raise ValueError(
                f"Event {event.sequence} already stored for ledger {event.ledger_id}"
            ) from e

    @staticmethod
    def _row_to_event(row) -> LedgerEvent:
        return LedgerEvent.from_dict(json.loads(row[0]))

    def load_events(self, ledger_id: str) -> List[LedgerEvent]:
        cursor = self.conn.execute("""
            SELECT canonical_json FROM events
            WHERE ledger_id = ? ORDER BY sequence ASC
        """, (ledger_id,))

        loaded = [self._row_to_event(row) for row in cursor]
        for i, event in enumerate(loaded):
            if event.sequence != i:
                raise ValueError(f"Sequence gap at {i} (found {event.sequence})")
            if i > 0 and event.prev_hash != event_hash(loaded[i - 1]):
                raise ValueError(f"Chain broken at sequence {event.sequence}")
        return loaded

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def list_ledgers(self) -> list[str]:
        """
        List all ledger ids, most recently active first.
        """
        cursor = self.conn.execute("""
            SELECT ledger_id
            FROM events
            GROUP BY ledger_id
            ORDER BY MAX(timestamp) DESC
        """)
        return [row[0] for row in cursor.fetchall()]

    def get_event_count(self, ledger_id: str) -> int:
        cursor = self.conn.execute(
            "SELECT COUNT(*) FROM events WHERE ledger_id = ?",
            (ledger_id,)
        )
        return cursor.fetchone()[0]

    def get_latest_timestamp(self, ledger_id: str) -> Optional[str]:
        cursor = self.conn.execute(
            "SELECT MAX(timestamp) FROM events WHERE ledger_id = ?",
            (ledger_id,)
        )
        row = cursor.fetchone()
        return row[0] if row and row[0] else None

    def query_events(self, ledger_id: str, limit: int = 50) -> List[LedgerEvent]:
        cursor = self.conn.execute("""
            SELECT canonical_json
            FROM events
            WHERE ledger_id = ?
            ORDER BY sequence DESC
            LIMIT ?
        """, (ledger_id, limit))

        loaded = [self._row_to_event(row) for row in cursor]
        loaded.reverse()  # latest last
        return loaded
