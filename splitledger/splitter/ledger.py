# splitledger/splitter/ledger.py
"""
Pull-payment splitter ledger.

Deposits go into a shared pool; each registered beneficiary withdraws its
proportional share whenever it likes, as often as it likes:

    total_received = pool_balance + total_released
    payment        = floor(total_received * shares / total_shares) - released

Bookkeeping is committed before funds move, so a call that re-enters
`release` from inside the transfer already sees the paid-out state.
"""

import threading
from typing import Dict, Iterable, Optional, Sequence, Tuple

from splitledger.core.accounting import pending_payment
from splitledger.core.errors import (
    CorruptTrailError,
    FundsTransferError,
    InvalidAmountError,
    LedgerNotFoundError,
    NothingDueError,
    NotBeneficiaryError,
    TransferFailedError,
)
from splitledger.core.registry import BeneficiaryRegistry
from splitledger.core.types import Beneficiary, EventKind, LedgerSnapshot
from splitledger.chain.trail import AuditTrail
from splitledger.funds import FundsTransfer, InMemoryPool
from splitledger.verify.verifier import AuditVerifier


class PaymentLedger:
    """
    Proportional-payment ledger over a fixed set of beneficiaries.

    The pool balance is never stored here; it is read live from the funds
    collaborator. All state changes go through `deposit` and `release`.
    """

    def __init__(
        self,
        accounts: Sequence[str],
        shares: Sequence[int],
        funds: Optional[FundsTransfer] = None,
        trail: Optional[AuditTrail] = None,
    ):
        self._registry = BeneficiaryRegistry(accounts, shares)
        self._funds = funds if funds is not None else InMemoryPool()
        self._trail = trail
        self._released: Dict[str, int] = {}
        self._total_released = 0
        self._lock = threading.RLock()

        for entry in self._registry:
            self._emit("registered", entry.account, entry.shares)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, int]], **kwargs) -> "PaymentLedger":
        pairs = list(pairs)
        return cls([p[0] for p in pairs], [p[1] for p in pairs], **kwargs)

    @classmethod
    def restore(cls, trail: AuditTrail, funds: Optional[FundsTransfer] = None) -> "PaymentLedger":
        """
        Rebuild a ledger by replaying its audit trail into `funds`.

        `funds` must not yet hold anything from this ledger. Past payouts are
        re-applied with `replay_transfer`, so recipient hooks do not run again.
        The trail is verified first; a trail that fails raises CorruptTrailError.
        Replay does not record new events.
        """
        registered = trail.get_events("registered")
        if not registered:
            raise LedgerNotFoundError(f"no registrations in trail for ledger {trail.ledger_id!r}")

        result = AuditVerifier().verify(trail.events)
        if not result.is_valid:
            raise CorruptTrailError(trail.ledger_id, result.failures)

        ledger = cls([e.account for e in registered], [e.amount for e in registered], funds=funds)
        for event in trail.events:
            if event.kind == "deposit":
                ledger._funds.receive(event.account, event.amount)
            elif event.kind == "release":
                ledger._commit(event.account, event.amount)
                ledger._funds.replay_transfer(event.account, event.amount)
        ledger._trail = trail
        return ledger

    # ── audit ──────────────────────────────────────────────────────────────

    def _emit(self, kind: EventKind, account: str, amount: int) -> None:
        if self._trail is None:
            return
        try:
            self._trail.record(kind, account, amount)
        except Exception as e:
            print(f"[splitledger] Warning: Failed to record {kind} event for {account}: {e}")

    @property
    def trail(self) -> Optional[AuditTrail]:
        return self._trail

    @property
    def funds(self) -> FundsTransfer:
        return self._funds

    # ── operations ─────────────────────────────────────────────────────────

    def deposit(self, amount: int, depositor: str = "anonymous") -> None:
        """Add funds to the pool. Open to anyone; zero is accepted and recorded."""
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidAmountError(f"deposit amount must be an integer, got {amount!r}")
        if amount < 0:
            raise InvalidAmountError(f"deposit amount must be >= 0, got {amount}")
        with self._lock:
            self._funds.receive(depositor, amount)
            self._emit("deposit", depositor, amount)

    def release(self, account: str) -> int:
        """
        Pay `account` everything it is currently owed and return the amount.

        Raises NotBeneficiaryError for unregistered accounts, NothingDueError
        when nothing is owed, TransferFailedError when the payout fails (in
        which case the bookkeeping is rolled back).
        """
        with self._lock:
            shares = self._registry.shares_of(account)
            if shares == 0:
                raise NotBeneficiaryError(account)

            payment = self._pending(account, shares)
            if payment == 0:
                raise NothingDueError(account)

            self._commit(account, payment)
            try:
                self._funds.transfer(account, payment)
            except FundsTransferError as e:
                self._rollback(account, payment)
                raise TransferFailedError(account, payment, str(e)) from e
            except BaseException:
                self._rollback(account, payment)
                raise

            self._emit("release", account, payment)
            return payment

    def _pending(self, account: str, shares: int) -> int:
        total_received = self._funds.balance() + self._total_released
        return pending_payment(
            total_received, shares, self._registry.total_shares, self._released.get(account, 0)
        )

    def _commit(self, account: str, payment: int) -> None:
        self._released[account] = self._released.get(account, 0) + payment
        self._total_released += payment

    def _rollback(self, account: str, payment: int) -> None:
        # Undo by delta: nested releases for other accounts during the
        # failed transfer keep their own bookkeeping.
        self._released[account] -= payment
        if self._released[account] == 0:
            del self._released[account]
        self._total_released -= payment

    # ── reads ──────────────────────────────────────────────────────────────

    @property
    def total_shares(self) -> int:
        return self._registry.total_shares

    def shares_of(self, account: str) -> int:
        return self._registry.shares_of(account)

    @property
    def total_released(self) -> int:
        with self._lock:
            return self._total_released

    def released_of(self, account: str) -> int:
        with self._lock:
            return self._released.get(account, 0)

    def beneficiary_at(self, index: int) -> str:
        return self._registry.at(index)

    @property
    def beneficiary_count(self) -> int:
        return len(self._registry)

    @property
    def beneficiaries(self) -> Tuple[Beneficiary, ...]:
        return self._registry.entries

    @property
    def pool_balance(self) -> int:
        return self._funds.balance()

    @property
    def total_received(self) -> int:
        with self._lock:
            return self._funds.balance() + self._total_released

    def releasable(self, account: str) -> int:
        """What `release(account)` would pay right now; 0 for non-beneficiaries."""
        with self._lock:
            shares = self._registry.shares_of(account)
            if shares == 0:
                return 0
            return self._pending(account, shares)

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                beneficiaries=self._registry.entries,
                total_shares=self._registry.total_shares,
                total_released=self._total_released,
                pool_balance=self._funds.balance(),
                released={e.account: self._released.get(e.account, 0) for e in self._registry},
            )

    def __repr__(self) -> str:
        return (
            f"PaymentLedger(beneficiaries={self.beneficiary_count}, "
            f"total_shares={self.total_shares}, total_released={self.total_released})"
        )
