# splitledger/core/canon.py
import hashlib
from typing import Any

try:
    import jcs
except ImportError:
    raise ImportError("Please install jcs: pip install jcs")

from splitledger.core.types import LedgerEvent


def canonical_json(obj: Any) -> bytes:
    """
    Produce deterministic UTF-8 bytes according to RFC 8785 (JSON Canonicalization Scheme).
    Returns bytes ready for hashing.
    """
    return jcs.canonicalize(obj)


def event_hash(event: LedgerEvent) -> str:
    """Hex sha256 over the canonical form of an event. Links the next event's prev_hash."""
    return hashlib.sha256(canonical_json(event.to_dict())).hexdigest()
