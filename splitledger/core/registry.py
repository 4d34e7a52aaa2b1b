# splitledger/core/registry.py
from typing import Dict, Iterable, Sequence, Tuple

from splitledger.core.types import Beneficiary
from splitledger.core.errors import RegistryError


def _check_account(account, position: int) -> str:
    if account is None or not isinstance(account, str) or not account.strip():
        raise RegistryError(f"account at position {position} is empty or invalid: {account!r}")
    return account


def _check_shares(shares, position: int) -> int:
    # bool is an int subclass; True is not a share weight
    if isinstance(shares, bool) or not isinstance(shares, int):
        raise RegistryError(f"shares at position {position} must be an integer, got {shares!r}")
    if shares <= 0:
        raise RegistryError(f"shares at position {position} are {shares}, must be > 0")
    return shares


class BeneficiaryRegistry:
    """
    Immutable set of beneficiaries and their share weights.

    One arena of entries (indexed lookup, insertion order) plus an
    account -> position map (membership and weight lookup). Both views are
    built together and never change afterwards.
    """

    __slots__ = ("_entries", "_index", "_total_shares")

    def __init__(self, accounts: Sequence[str], shares: Sequence[int]):
        accounts = list(accounts)
        shares = list(shares)
        if len(accounts) != len(shares):
            raise RegistryError(
                f"accounts and shares length mismatch: {len(accounts)} != {len(shares)}"
            )
        if not accounts:
            raise RegistryError("no beneficiaries")

        # Validate everything before assigning anything
        entries = []
        index: Dict[str, int] = {}
        for pos, (account, weight) in enumerate(zip(accounts, shares)):
            account = _check_account(account, pos)
            weight = _check_shares(weight, pos)
            if account in index:
                raise RegistryError(f"duplicate account {account!r} at position {pos}")
            index[account] = pos
            entries.append(Beneficiary(account=account, shares=weight))

        self._entries: Tuple[Beneficiary, ...] = tuple(entries)
        self._index = index
        self._total_shares = sum(e.shares for e in entries)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, int]]) -> "BeneficiaryRegistry":
        pairs = list(pairs)
        return cls([p[0] for p in pairs], [p[1] for p in pairs])

    @property
    def total_shares(self) -> int:
        return self._total_shares

    @property
    def entries(self) -> Tuple[Beneficiary, ...]:
        return self._entries

    def shares_of(self, account: str) -> int:
        """Share weight of an account; 0 means not registered."""
        pos = self._index.get(account)
        return 0 if pos is None else self._entries[pos].shares

    def __contains__(self, account) -> bool:
        return account in self._index

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def at(self, index: int) -> str:
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(f"index must be an integer, got {index!r}")
        if index < 0 or index >= len(self._entries):
            raise IndexError(f"beneficiary index {index} out of range [0, {len(self._entries)})")
        return self._entries[index].account

    def accounts(self) -> Tuple[str, ...]:
        return tuple(e.account for e in self._entries)
