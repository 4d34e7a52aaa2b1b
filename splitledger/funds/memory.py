# splitledger/funds/memory.py
import threading
from typing import Callable, Dict, Optional

from splitledger.core.errors import FundsTransferError
from . import FundsTransfer

TransferHook = Callable[[str, int], None]


class InMemoryPool(FundsTransfer):
    """
    Process-local holding account.

    The balance is debited before `on_transfer` runs, the same way a value
    transfer lands before the recipient's receive logic executes. If the hook
    raises, the transfer is reverted and reported as FundsTransferError.
    """

    def __init__(self, initial_balance: int = 0, on_transfer: Optional[TransferHook] = None):
        if initial_balance < 0:
            raise ValueError("initial_balance must be >= 0")
        self._balance = initial_balance
        self.on_transfer = on_transfer
        self.payouts: Dict[str, int] = {}
        self.received: Dict[str, int] = {}
        self._lock = threading.RLock()

    def balance(self) -> int:
        with self._lock:
            return self._balance

    def receive(self, source: str, amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise FundsTransferError(f"invalid deposit amount {amount}")
        with self._lock:
            self._balance += amount
            self.received[source] = self.received.get(source, 0) + amount

    def _debit(self, destination: str, amount: int) -> None:
        if amount <= 0:
            raise FundsTransferError(f"invalid transfer amount {amount}")
        with self._lock:
            if amount > self._balance:
                raise FundsTransferError(
                    f"insufficient funds: balance {self._balance}, requested {amount}"
                )
            self._balance -= amount
            self.payouts[destination] = self.payouts.get(destination, 0) + amount

    def transfer(self, destination: str, amount: int) -> None:
        self._debit(destination, amount)

        hook = self.on_transfer
        if hook is None:
            return
        try:
            hook(destination, amount)
        except Exception as e:
            with self._lock:
                self._balance += amount
                self.payouts[destination] -= amount
            raise FundsTransferError(f"recipient {destination!r} rejected payment: {e}") from e

    def replay_transfer(self, destination: str, amount: int) -> None:
        # recipient already ran its receive logic when the payout first happened
        self._debit(destination, amount)
