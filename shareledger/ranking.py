"""
ranking.py - Current owners and top beneficiaries. Read-only.

Owners are derived from the append-only holder history filtered by live
balance, so they come out in first-acquisition order. The ranking scans
owners in that order and inserts each into a fixed-size buffer before the
first occupant with a strictly smaller balance. Equal balances never
displace, which makes earlier acquirers win ties.
"""

from __future__ import annotations
from typing import List, Mapping, Sequence, Tuple

from .core import Identity, ShareLedgerView, TOP_BENEFICIARIES


def compute_top_holders(
    owners: Sequence[Identity],
    balances: Mapping[Identity, int],
    k: int = TOP_BENEFICIARIES,
) -> Tuple[List[Identity], List[int]]:
    """
    Rank owners by balance, descending, keeping at most k. Pure function.

    Args:
        owners: Candidates in first-acquisition order
        balances: Live balance for each candidate
        k: Buffer size

    Returns:
        (identities, balances), both of length min(k, len(owners))

    Example:
        >>> compute_top_holders(["A", "B", "C", "D"], {"A": 50, "B": 30, "C": 50, "D": 10})
        (['A', 'C', 'B', 'D'], [50, 50, 30, 10])
    """
    top_ids: List[Identity] = []
    top_bals: List[int] = []
    for holder in owners:
        bal = balances.get(holder, 0)
        for slot in range(k):
            if slot == len(top_ids) or top_bals[slot] < bal:
                top_ids.insert(slot, holder)
                top_bals.insert(slot, bal)
                del top_ids[k:], top_bals[k:]
                break
    return top_ids, top_bals


def get_owners(view: ShareLedgerView, asset_id: int) -> List[Identity]:
    """Identities currently holding the asset, in first-acquisition order."""
    balances = view.get_balances(asset_id)
    return [h for h in view.holder_history(asset_id) if balances.get(h, 0) > 0]


def get_top10_beneficiaries(view: ShareLedgerView, asset_id: int) -> Tuple[List[Identity], List[int]]:
    """Up to ten largest holders with their balances, ties broken by acquisition order."""
    owners = get_owners(view, asset_id)
    return compute_top_holders(owners, view.get_balances(asset_id), TOP_BENEFICIARIES)
