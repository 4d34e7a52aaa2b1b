# splitledger/core/types.py
from dataclasses import dataclass, asdict
from typing import Dict, Literal, Tuple

EventKind = Literal["registered", "deposit", "release"]


@dataclass(frozen=True)
class Beneficiary:
    """One registry entry: an account and its integer share weight."""
    account: str
    shares: int


@dataclass(frozen=True)
class LedgerEvent:
    """Single entry in the append-only, hash-chained audit trail of a ledger."""
    id: str
    ledger_id: str
    sequence: int
    kind: EventKind
    account: str                    # beneficiary or depositor
    amount: int                     # share weight for "registered" events
    timestamp: str                  # ISO 8601 UTC with millis
    prev_hash: str = ""             # hex(sha256) or empty for first event

    def to_dict(self) -> dict:
        """Helper for canonicalization / hashing.

        Amounts go out as decimal strings so integers of any size survive
        canonical JSON.
        """
        d = asdict(self)
        d["amount"] = str(self.amount)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "LedgerEvent":
        return cls(
            id=d["id"],
            ledger_id=d["ledger_id"],
            sequence=int(d["sequence"]),
            kind=d["kind"],
            account=d["account"],
            amount=int(d["amount"]),
            timestamp=d["timestamp"],
            prev_hash=d.get("prev_hash", ""),
        )


@dataclass(frozen=True)
class LedgerSnapshot:
    """Point-in-time view of a ledger, taken under the ledger lock."""
    beneficiaries: Tuple[Beneficiary, ...]
    total_shares: int
    total_released: int
    pool_balance: int
    released: Dict[str, int]

    @property
    def total_received(self) -> int:
        return self.pool_balance + self.total_released
