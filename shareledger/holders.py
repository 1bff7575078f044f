"""
holders.py - Append-only holder history per asset.

Every identity that has ever held a positive balance of an asset is recorded
once, in first-acquisition order, and never removed. Current owners are
derived by filtering this history against live balances (see ranking.py).

The history only grows, so owner and ranking queries are linear in the number
of historical holders rather than current ones. Pruning stale entries would
change the iteration order that the ranking tie-break relies on.
"""

from __future__ import annotations
from typing import Dict, List, Set

from .core import Identity


class HolderIndex:
    """Ordered, duplicate-free record of holders for each asset."""

    def __init__(self):
        self._order: Dict[int, List[Identity]] = {}
        self._members: Dict[int, Set[Identity]] = {}

    def register(self, asset_id: int, holder: Identity) -> bool:
        """
        Record holder for asset if not already present.

        Returns:
            True if the holder was appended, False if already known.
        """
        members = self._members.setdefault(asset_id, set())
        if holder in members:
            return False
        members.add(holder)
        self._order.setdefault(asset_id, []).append(holder)
        return True

    def history(self, asset_id: int) -> List[Identity]:
        """Return a copy of the holder sequence for asset."""
        return list(self._order.get(asset_id, ()))

    def copy(self) -> HolderIndex:
        cloned = HolderIndex()
        cloned._order = {a: list(seq) for a, seq in self._order.items()}
        cloned._members = {a: set(m) for a, m in self._members.items()}
        return cloned
