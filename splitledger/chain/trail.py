# splitledger/chain/trail.py
from datetime import datetime, timezone
from typing import List, Optional, Union
from dataclasses import dataclass, field
from uuid import uuid4

from splitledger.core.types import LedgerEvent, EventKind
from splitledger.core.canon import event_hash
from splitledger.storage import EventStore, create_storage


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


@dataclass
class AuditTrail:
    """
    Append-only audit log of one ledger instance.
    Keeps events ordered and hash-chained, and mirrors them into
    optional persistent storage (SQLite, memory).
    """
    ledger_id: str
    events: List[LedgerEvent] = field(default_factory=list)
    storage: Optional[Union[EventStore, str]] = None

    def __post_init__(self):
        if isinstance(self.storage, str):
            stripped = self.storage.strip()
            if stripped.startswith("sqlite://") or stripped == "memory:":
                self.storage = create_storage(stripped)
            elif stripped:
                # Plain file path -> SQLite
                self.storage = create_storage(f"sqlite://{stripped}")
            else:
                self.storage = None

        if self.storage and not self.events:
            try:
                loaded = self.storage.load_events(self.ledger_id)
                self.events = loaded
                if loaded:
                    print(f"[splitledger] Loaded {len(loaded)} events for ledger {self.ledger_id}")
            except Exception as e:
                print(f"[splitledger] Warning: Could not load ledger {self.ledger_id}: {e}")

    @property
    def length(self) -> int:
        return len(self.events)

    def record(
        self,
        kind: EventKind,
        account: str,
        amount: int,
        timestamp: Optional[str] = None,
    ) -> LedgerEvent:
        """
        Chain a new event onto the trail and persist it if storage is active.
        Returns the recorded event.
        """
        event = LedgerEvent(
            id=uuid4().hex,
            ledger_id=self.ledger_id,
            sequence=self.length,
            kind=kind,
            account=account,
            amount=amount,
            timestamp=timestamp or utc_now(),
            prev_hash=self.get_last_hash() or "",
        )
        self.events.append(event)

        if self.storage:
            try:
                self.storage.append(event)
            except Exception as e:
                print(f"[splitledger] Warning: Failed to persist event {event.sequence}: {e}")

        return event

    def get_events(self, kind: Optional[EventKind] = None) -> List[LedgerEvent]:
        """Copy of the trail, optionally filtered by kind."""
        if kind is None:
            return self.events.copy()
        return [e for e in self.events if e.kind == kind]

    def get_last_hash(self) -> Optional[str]:
        if not self.events:
            return None
        return event_hash(self.events[-1])

    def close(self) -> None:
        if self.storage:
            try:
                self.storage.close()
                print(f"[splitledger] Storage closed for ledger {self.ledger_id}")
            except Exception as e:
                print(f"[splitledger] Warning: Error closing storage: {e}")
            self.storage = None
