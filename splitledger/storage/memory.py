# splitledger/storage/memory.py
from typing import Dict, List

from splitledger.core.types import LedgerEvent
from . import EventStore


class MemoryEventStore(EventStore):
    """Non-persistent store, mostly for tests and embedding."""

    def __init__(self):
        self._events: Dict[str, List[LedgerEvent]] = {}
        self.closed = False

    def append(self, event: LedgerEvent) -> None:
        if self.closed:
            raise RuntimeError("Storage is closed")
        events = self._events.setdefault(event.ledger_id, [])
        if event.sequence != len(events):
            raise ValueError(
                f"Event {event.sequence} out of order for ledger {event.ledger_id}"
            )
        events.append(event)

    def load_events(self, ledger_id: str) -> List[LedgerEvent]:
        return list(self._events.get(ledger_id, []))

    def close(self) -> None:
        self.closed = True
