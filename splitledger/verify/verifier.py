# splitledger/verify/verifier.py
from typing import Dict, List, Optional
from dataclasses import dataclass

from splitledger.core.types import LedgerEvent
from splitledger.core.canon import event_hash
from splitledger.core.accounting import entitlement
from splitledger.storage import EventStore


@dataclass
class VerificationFailure:
    index: int
    message: str
    category: str = "general"  # e.g. "hash_chain", "sequence", "registry", "accounting"


@dataclass
class VerificationResult:
    is_valid: bool
    message: str = ""
    failures: List[VerificationFailure] = None

    def __post_init__(self):
        if self.failures is None:
            self.failures = []

    @property
    def first_failure(self) -> Optional[VerificationFailure]:
        return self.failures[0] if self.failures else None

    def fail(self, index: int, message: str, category: str) -> None:
        self.failures.append(VerificationFailure(index, message, category))
        self.is_valid = False

    def __bool__(self):
        return self.is_valid

    def __str__(self):
        if self.is_valid:
            return "Trail is valid ✓"
        lines = [f"Verification FAILED ({len(self.failures)} issues):"]
        for f in self.failures:
            lines.append(f"  • [{f.index}] {f.category}: {f.message}")
        return "\n".join(lines)


class AuditVerifier:
    """
    Offline verifier for ledger audit trails.
    Checks the hash chain, then replays every event and confirms each release
    never paid more than the floor-division amount owed at that point.
    """

    def verify(self, events: List[LedgerEvent]) -> VerificationResult:
        if not events:
            return VerificationResult(True, "Empty trail is valid")

        result = VerificationResult(True)

        # 1. Ledger id & sequence consistency
        ledger_id = events[0].ledger_id
        for i, ev in enumerate(events):
            if ev.ledger_id != ledger_id:
                result.fail(i, f"Ledger mismatch: {ev.ledger_id}", "ledger")
            if ev.sequence != i:
                result.fail(i, f"Sequence mismatch: expected {i}, got {ev.sequence}", "sequence")

        if not result.is_valid:
            return result

        # 2. Hash chain
        if events[0].prev_hash != "":
            result.fail(0, "First event must have an empty prev_hash", "hash_chain")
        for i in range(1, len(events)):
            if events[i].prev_hash != event_hash(events[i - 1]):
                result.fail(i, "prev_hash does not match previous event hash", "hash_chain")

        # 3. Registry + accounting replay
        self._replay(events, result)

        result.message = "Valid trail" if result.is_valid else f"Failed with {len(result.failures)} issues"
        return result

    def _replay(self, events: List[LedgerEvent], result: VerificationResult) -> None:
        shares: Dict[str, int] = {}
        released: Dict[str, int] = {}
        deposited = 0
        total_released = 0
        registry_closed = False

        for i, ev in enumerate(events):
            if ev.kind == "registered":
                if registry_closed:
                    result.fail(i, f"Registration of {ev.account!r} after funds activity", "registry")
                elif ev.account in shares:
                    result.fail(i, f"Duplicate beneficiary {ev.account!r}", "registry")
                elif ev.amount <= 0:
                    result.fail(i, f"Non-positive shares for {ev.account!r}", "registry")
                else:
                    shares[ev.account] = ev.amount
                continue

            registry_closed = True
            if not shares:
                result.fail(i, "Funds activity before any beneficiary was registered", "registry")
                return

            if ev.kind == "deposit":
                if ev.amount < 0:
                    result.fail(i, f"Negative deposit {ev.amount}", "amount")
                    continue
                deposited += ev.amount

            elif ev.kind == "release":
                if ev.account not in shares:
                    result.fail(i, f"Release to non-beneficiary {ev.account!r}", "authorization")
                    continue
                if ev.amount <= 0:
                    result.fail(i, f"Non-positive release {ev.amount}", "amount")
                    continue
                # A release event is written after its transfer, so deposits
                # made from recipient code during that transfer precede it in
                # the trail. The amount is bounded by, not equal to, what the
                # deposits seen so far imply.
                owed = entitlement(deposited, shares[ev.account], sum(shares.values()))
                allowed = owed - released.get(ev.account, 0)
                if ev.amount > allowed:
                    result.fail(
                        i, f"Release to {ev.account!r} paid {ev.amount}, at most {allowed} was due", "accounting"
                    )
                released[ev.account] = released.get(ev.account, 0) + ev.amount
                total_released += ev.amount
                if total_released > deposited:
                    result.fail(i, f"Released {total_released} exceeds deposits {deposited}", "accounting")

            else:
                result.fail(i, f"Unknown event kind {ev.kind!r}", "general")

    def verify_from_storage(self, ledger_id: str, storage: EventStore) -> VerificationResult:
        """
        Load events from persistent storage and verify the trail.
        """
        try:
            events = storage.load_events(ledger_id)
        except Exception as e:
            return VerificationResult(
                False,
                f"Failed to load ledger '{ledger_id}' from storage: {str(e)}",
                [VerificationFailure(-1, str(e), "storage")]
            )

        if not events:
            return VerificationResult(
                False,
                f"No events found for ledger '{ledger_id}'",
                [VerificationFailure(-1, "ledger not found", "storage")]
            )
        return self.verify(events)
