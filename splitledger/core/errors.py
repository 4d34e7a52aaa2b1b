# splitledger/core/errors.py
"""
Exception hierarchy for the payment ledger.

Every rejected operation leaves the ledger exactly as it was before the call.
"""


class LedgerError(Exception):
    """Base class for all ledger errors."""


class ConstructionError(LedgerError):
    """Malformed registry input. No ledger instance is produced."""


class RegistryError(ConstructionError):
    pass


class NotBeneficiaryError(LedgerError):
    """Release requested for an account that holds no shares. Permanent."""

    def __init__(self, account):
        super().__init__(f"account has no shares: {account!r}")
        self.account = account


class NothingDueError(LedgerError):
    """Nothing is currently owed. Try again after further deposits."""

    def __init__(self, account):
        super().__init__(f"account is not due payment: {account!r}")
        self.account = account


class TransferFailedError(LedgerError):
    """The funds collaborator could not pay out. Bookkeeping was rolled back."""

    retryable = True

    def __init__(self, account, amount: int, reason: str = ""):
        msg = f"transfer of {amount} to {account!r} failed"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.account = account
        self.amount = amount


class InvalidAmountError(LedgerError):
    pass


class LedgerNotFoundError(LedgerError):
    pass


class AccountingError(LedgerError):
    """Released amounts exceed what the received funds entitle. Corrupted state."""


class CorruptTrailError(LedgerError):
    """An audit trail failed verification and cannot be replayed."""

    def __init__(self, ledger_id: str, failures):
        details = "; ".join(f"[{f.index}] {f.category}: {f.message}" for f in failures)
        super().__init__(f"trail for ledger {ledger_id!r} is corrupt: {details}")
        self.ledger_id = ledger_id
        self.failures = failures


class FundsTransferError(Exception):
    """Raised by funds collaborators when a transfer cannot complete."""
