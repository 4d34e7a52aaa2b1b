# splitledger/funds/__init__.py
"""
Funds-transfer collaborators: hold the pool balance and move funds out of it.
"""

from abc import ABC, abstractmethod


class FundsTransfer(ABC):
    """Abstract holding account behind a payment ledger.

    `receive` and `transfer` report every failure, including a negative
    amount, as FundsTransferError. `transfer` never transfers partially.
    """

    @abstractmethod
    def balance(self) -> int:
        pass

    @abstractmethod
    def receive(self, source: str, amount: int) -> None:
        pass

    @abstractmethod
    def transfer(self, destination: str, amount: int) -> None:
        pass

    def replay_transfer(self, destination: str, amount: int) -> None:
        """Re-apply a payout that already happened, without recipient side effects.

        Used when a ledger is rebuilt from its audit trail. Backends that run
        recipient code on transfer must override this.
        """
        self.transfer(destination, amount)


from .memory import InMemoryPool

__all__ = ["FundsTransfer", "InMemoryPool"]
