# splitledger/core/accounting.py
"""
Proportional entitlement math.

    entitlement = floor(total_received * shares / total_shares)
    pending     = entitlement - already_released

Floor division keeps the sum of all entitlements at or below total_received
for every snapshot. Remainders ("dust") stay in the pool and are never tracked
separately.
"""

from splitledger.core.errors import AccountingError


def entitlement(total_received: int, shares: int, total_shares: int) -> int:
    """All-time amount owed to a holder of `shares` out of `total_shares`."""
    if total_shares <= 0:
        raise ValueError("total_shares must be positive")
    if total_received < 0 or shares < 0:
        raise ValueError("total_received and shares must be non-negative")
    return total_received * shares // total_shares


def pending_payment(total_received: int, shares: int, total_shares: int, released: int) -> int:
    """What is owed right now, given what was already released to this holder."""
    owed = entitlement(total_received, shares, total_shares) - released
    if owed < 0:
        # released can only grow by amounts computed here, so this means corrupted state
        raise AccountingError(
            f"released {released} exceeds entitlement for total_received={total_received}"
        )
    return owed


def dust(total_received: int, share_weights) -> int:
    """Amount no holder is entitled to at this total_received."""
    weights = list(share_weights)
    total_shares = sum(weights)
    return total_received - sum(entitlement(total_received, w, total_shares) for w in weights)
