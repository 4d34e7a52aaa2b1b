# splitledger/storage/__init__.py
"""
Storage backends for persistent ledger audit trails.
"""

from abc import ABC, abstractmethod
from typing import List
from pathlib import Path
from splitledger.core.types import LedgerEvent


class EventStore(ABC):
    """Abstract base for all persistent event storage implementations."""

    @abstractmethod
    def append(self, event: LedgerEvent) -> None:
        pass

    @abstractmethod
    def load_events(self, ledger_id: str) -> List[LedgerEvent]:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


def create_storage(uri: str) -> EventStore:
    if uri.startswith("sqlite://"):
        from .sqlite import SQLiteEventStore
        raw_path = uri[len("sqlite://"):]
        if not raw_path:
            raise ValueError("sqlite:// URI needs a path")
        return SQLiteEventStore(Path(raw_path).expanduser().resolve())

    elif uri == "memory:":
        from .memory import MemoryEventStore
        return MemoryEventStore()
    else:
        raise ValueError(f"Unsupported storage URI: {uri}")


from .sqlite import SQLiteEventStore
from .memory import MemoryEventStore

__all__ = ["EventStore", "create_storage", "SQLiteEventStore", "MemoryEventStore"]
