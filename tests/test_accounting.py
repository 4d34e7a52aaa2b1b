# tests/test_accounting.py
import random

import pytest

from splitledger.core.accounting import entitlement, pending_payment, dust
from splitledger.core.errors import AccountingError, LedgerError


def test_entitlement_floors():
    assert entitlement(10, 1, 3) == 3
    assert entitlement(100, 50, 100) == 50
    assert entitlement(0, 5, 7) == 0


def test_entitlement_rejects_zero_total_shares():
    with pytest.raises(ValueError):
        entitlement(10, 1, 0)


def test_pending_payment_subtracts_released():
    assert pending_payment(12, 1, 3, released=3) == 1
    assert pending_payment(10, 1, 3, released=3) == 0


def test_pending_payment_detects_overpayment():
    with pytest.raises(AccountingError):
        pending_payment(10, 1, 3, released=4)


def test_dust():
    assert dust(10, [1, 1, 1]) == 1
    assert dust(100, [50, 30, 20]) == 0


def test_entitlements_never_exceed_received():
    rng = random.Random(20261019)
    for _ in range(500):
        weights = [rng.randint(1, 1_000) for _ in range(rng.randint(1, 8))]
        total = sum(weights)
        received = rng.randint(0, 10**24)
        owed = sum(entitlement(received, w, total) for w in weights)
        assert owed <= received
        assert received - owed < len(weights)


def test_entitlement_monotone_in_received():
    previous = 0
    for received in range(0, 200):
        current = entitlement(received, 7, 31)
        assert current >= previous
        previous = current


def test_overpayment_is_a_ledger_error():
    with pytest.raises(LedgerError, match="exceeds entitlement"):
        pending_payment(100, 1, 2, released=60)
