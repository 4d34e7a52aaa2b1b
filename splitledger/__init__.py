# splitledger/__init__.py
"""
splitledger — proportional pull-payment ledger.
A fixed set of beneficiaries withdraws its share of a shared pool at any time,
in any order, without double-paying, with a hash-chained audit trail of every
deposit and release.
"""

from splitledger.chain.trail import AuditTrail
from splitledger.core.errors import (
    AccountingError,
    ConstructionError,
    CorruptTrailError,
    FundsTransferError,
    InvalidAmountError,
    LedgerError,
    LedgerNotFoundError,
    NothingDueError,
    NotBeneficiaryError,
    RegistryError,
    TransferFailedError,
)
from splitledger.core.registry import BeneficiaryRegistry
from splitledger.core.types import Beneficiary, LedgerEvent, LedgerSnapshot
from splitledger.funds import FundsTransfer, InMemoryPool
from splitledger.splitter.ledger import PaymentLedger
from splitledger.verify.verifier import AuditVerifier, VerificationResult

__version__ = "0.1.0-dev"

__all__ = [
    "PaymentLedger",
    "BeneficiaryRegistry",
    "Beneficiary",
    "LedgerEvent",
    "LedgerSnapshot",
    "AuditTrail",
    "FundsTransfer",
    "InMemoryPool",
    "AuditVerifier",
    "VerificationResult",
    "LedgerError",
    "ConstructionError",
    "RegistryError",
    "NotBeneficiaryError",
    "NothingDueError",
    "TransferFailedError",
    "InvalidAmountError",
    "LedgerNotFoundError",
    "CorruptTrailError",
    "AccountingError",
    "FundsTransferError",
]
