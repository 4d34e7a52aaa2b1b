# tests/test_storage.py
import sqlite3
from pathlib import Path

import pytest

from splitledger.storage import (
    SQLiteEventStore,
    MemoryEventStore,
    create_storage,
)
from splitledger.chain.trail import AuditTrail
from splitledger.core.types import LedgerEvent
from splitledger.splitter.ledger import PaymentLedger


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def storage(temp_db_path: Path) -> SQLiteEventStore:
    store = SQLiteEventStore(db_path=temp_db_path)
    yield store
    store.close()


def make_event(seq=0, ledger_id="ledger-1", kind="deposit", amount=10, prev_hash=""):
    return LedgerEvent(
        id=f"evt-{seq}",
        ledger_id=ledger_id,
        sequence=seq,
        kind=kind,
        account="payer",
        amount=amount,
        timestamp=f"2026-10-19T12:00:{seq:02d}.000+00:00",
        prev_hash=prev_hash,
    )


def test_create_storage_routing(temp_db_path: Path):
    store = create_storage(f"sqlite://{temp_db_path}")
    assert isinstance(store, SQLiteEventStore)
    assert store.db_path == temp_db_path.resolve()
    store.close()

    assert isinstance(create_storage("memory:"), MemoryEventStore)


@pytest.mark.parametrize("uri", ["jsonl:foo", "postgres://db", "sqlite://"])
def test_create_storage_rejects_unknown(uri):
    with pytest.raises(ValueError):
        create_storage(uri)


def test_default_path_and_env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SPLITLEDGER_DB_PATH", raising=False)
    default_store = SQLiteEventStore()
    assert default_store.db_path.name == "splitledger.db"
    default_store.close()

    env_db = tmp_path / "env" / "env-test.db"
    monkeypatch.setenv("SPLITLEDGER_DB_PATH", str(env_db))
    env_store = SQLiteEventStore()
    assert env_store.db_path == env_db.resolve()
    env_store.close()


def test_schema_creation(storage: SQLiteEventStore):
    cursor = storage.conn.execute("PRAGMA table_info(events)")
    columns = {row[1] for row in cursor.fetchall()}
    assert columns == {
        "ledger_id", "sequence", "kind", "account", "amount", "timestamp",
        "prev_hash", "event_hash", "canonical_json",
    }


def test_append_and_load(storage: SQLiteEventStore):
    ev = make_event()
    storage.append(ev)
    assert storage.load_events("ledger-1") == [ev]


def test_huge_amount_roundtrip(storage: SQLiteEventStore):
    ev = make_event(amount=2**200)
    storage.append(ev)
    assert storage.load_events("ledger-1")[0].amount == 2**200


def test_duplicate_sequence_rejected(storage: SQLiteEventStore):
    storage.append(make_event())
    with pytest.raises(ValueError, match="already stored"):
        storage.append(make_event())


def test_load_empty_ledger(storage: SQLiteEventStore):
    assert storage.load_events("non-existent") == []


def test_closed_connection(temp_db_path: Path):
    store = SQLiteEventStore(temp_db_path)
    store.close()
    with pytest.raises(RuntimeError, match="closed"):
        store.load_events("x")


def test_context_manager(temp_db_path: Path):
    with SQLiteEventStore(temp_db_path) as store:
        store.append(make_event())
    assert store._conn is None


def test_ledger_integration(temp_db_path: Path):
    trail = AuditTrail("integ", storage=f"sqlite://{temp_db_path}")
    ledger = PaymentLedger(["alice", "bob"], [1, 1], trail=trail)
    ledger.deposit(10, depositor="payer")
    ledger.release("alice")
    trail.close()

    store = SQLiteEventStore(temp_db_path)
    restored = PaymentLedger.restore(AuditTrail("integ", storage=store))
    assert restored.released_of("alice") == 5
    assert restored.pool_balance == 5
    assert restored.total_shares == 2
    store.close()


def test_tamper_detection(temp_db_path: Path):
    trail = AuditTrail("tamper", storage=f"sqlite://{temp_db_path}")
    PaymentLedger(["alice", "bob"], [1, 1], trail=trail).deposit(10)
    trail.close()

    conn = sqlite3.connect(temp_db_path)
    row = conn.execute(
        "SELECT canonical_json FROM events WHERE ledger_id='tamper' AND sequence=0"
    ).fetchone()
    conn.execute(
        "UPDATE events SET canonical_json=? WHERE ledger_id='tamper' AND sequence=0",
        (row[0].replace('"alice"', '"mallory"'),),
    )
    conn.commit()
    conn.close()

    store = SQLiteEventStore(temp_db_path)
    with pytest.raises(ValueError, match="Chain broken"):
        store.load_events("tamper")
    store.close()


def test_listing_and_counts(storage: SQLiteEventStore):
    storage.append(make_event(0, ledger_id="old"))
    storage.append(make_event(0, ledger_id="new"))
    storage.conn.execute(
        "UPDATE events SET timestamp='2026-10-19T13:00:00.000+00:00' WHERE ledger_id='new'"
    )

    assert storage.list_ledgers() == ["new", "old"]
    assert storage.get_event_count("old") == 1
    assert storage.get_event_count("missing") == 0
    assert storage.get_latest_timestamp("new") == "2026-10-19T13:00:00.000+00:00"
    assert storage.get_latest_timestamp("missing") is None


def test_query_events_latest_last(temp_db_path: Path):
    trail = AuditTrail("query", storage=f"sqlite://{temp_db_path}")
    ledger = PaymentLedger(["alice"], [1], trail=trail)
    for amount in (1, 2, 3):
        ledger.deposit(amount)

    recent = trail.storage.query_events("query", limit=2)
    assert [e.amount for e in recent] == [2, 3]
    trail.close()


def test_memory_store_rejects_out_of_order():
    store = MemoryEventStore()
    with pytest.raises(ValueError):
        store.append(make_event(seq=1))
