# examples/split_demo.py
# Run with: poetry run python examples/split_demo.py
#
# Walks through a revenue split: deposits, pull payments, dust, a recipient
# that tries to re-enter release(), and an offline audit of the trail.

from splitledger import (
    AuditTrail,
    AuditVerifier,
    InMemoryPool,
    NothingDueError,
    PaymentLedger,
    TransferFailedError,
)


# =============================================================================
# RevenueSplit: ledger + pool + trail wired together
# =============================================================================

class RevenueSplit:
    """Small host object owning one ledger instance and its collaborators."""

    def __init__(self, ledger_id: str, payees: dict, storage: str = "memory:"):
        self.pool = InMemoryPool()
        self.trail = AuditTrail(ledger_id, storage=storage)
        self.ledger = PaymentLedger(
            list(payees.keys()), list(payees.values()), funds=self.pool, trail=self.trail
        )

    def pay(self, account: str) -> int:
        try:
            return self.ledger.release(account)
        except NothingDueError:
            return 0

    def show(self, title: str):
        snap = self.ledger.snapshot()
        print(f"\n--- {title} ---")
        print(f"received={snap.total_received} released={snap.total_released} pool={snap.pool_balance}")
        for entry in snap.beneficiaries:
            print(
                f"  {entry.account:8} shares={entry.shares:<3} "
                f"released={snap.released[entry.account]:<4} "
                f"releasable={self.ledger.releasable(entry.account)}"
            )


# =============================================================================
# DEMO
# =============================================================================

if __name__ == "__main__":
    split = RevenueSplit("demo-split", {"alice": 1, "bob": 1, "carol": 1})

    split.ledger.deposit(10, depositor="customer-1")
    split.show("after first deposit")

    for name in ("alice", "bob", "carol"):
        print(f"release({name}) -> {split.pay(name)}")
    split.show("one unit of dust left in the pool")

    split.ledger.deposit(2, depositor="customer-2")
    print(f"release(alice) -> {split.pay('alice')}")

    # A recipient whose receive logic calls back into release()
    def greedy_recipient(destination, amount):
        try:
            split.ledger.release(destination)
            print("  re-entrant release succeeded (should never happen)")
        except NothingDueError:
            print(f"  re-entrant release({destination}) rejected: nothing due")

    split.pool.on_transfer = greedy_recipient
    split.ledger.deposit(30, depositor="customer-3")
    print(f"release(bob) -> {split.pay('bob')}")

    # A recipient that refuses funds: the release is rolled back
    def refusing_recipient(destination, amount):
        raise RuntimeError("wallet frozen")

    split.pool.on_transfer = refusing_recipient
    try:
        split.ledger.release("carol")
    except TransferFailedError as e:
        print(f"release(carol) failed and was rolled back: {e}")
    split.pool.on_transfer = None
    print(f"retry release(carol) -> {split.pay('carol')}")

    split.show("final state")

    result = AuditVerifier().verify(split.trail.get_events())
    print()
    print(result)
