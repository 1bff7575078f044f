"""
ledger.py - Stateful Share Ledger

The ShareLedger is the single process-wide store for the share system. It is
the only module that mutates state, so every change is controlled and
auditable.

Key responsibilities:
    - Implements ShareLedgerView for read-only access by pure functions
    - Holds assets, balances, holder history, listings, and the payout pool
    - Provides move(), the supply-neutral primitive every trade path uses
    - Provides atomic(), the commit boundary around each public operation:
      state is snapshotted on entry and restored if anything raises, and
      events are only appended to the log once the outermost block commits
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .core import (
    # Types
    Asset, Listing, Move, LedgerEvent,
    Balances, Identity,
    # Constants
    ZERO,
    # Exceptions
    ShareLedgerError, NotFoundError, InsufficientBalanceError, FundsError,
    # Helpers
    to_money,
)
from .guard import ReentrancyGuard
from .holders import HolderIndex


# Staged event: (event_type, asset_id, params)
_StagedEvent = Tuple[str, Optional[int], Tuple[Tuple[str, Any], ...]]


class ShareLedger:
    """
    Share ledger with supply conservation and all-or-nothing commits.

    Implements the ShareLedgerView protocol, allowing the ledger to be passed
    to pure functions that only read from it.

    Design Principles:
        - Conservation: shares are only created once per asset, at creation.
          Every later change is a move between two holders.
        - Atomicity: mutations made inside atomic() are rolled back on any
          exception, and their events are discarded.

    Thread Safety:
        Not thread-safe. Operations are serialized by the caller.

    Example:
        ledger = ShareLedger("main")
        with ledger.atomic("seed"):
            asset = ledger.add_asset("Loft", "Lisbon", "ipfs://x", 100, Decimal("5"), "issuer")
            ledger.move(asset.asset_id, "issuer", "alice", 10)
    """

    def __init__(self, name: str = "main", verbose: bool = True):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            verbose: Print a line for every committed or rejected operation
        """
        self.name = name
        self.verbose = verbose
        self.assets: Dict[int, Asset] = {}
        self.balances: Dict[int, Dict[Identity, int]] = {}
        self.holders = HolderIndex()
        self.listings: Dict[Tuple[int, Identity], Listing] = {}
        self.payout_pool: Decimal = ZERO
        self.event_log: List[LedgerEvent] = []
        self.guard = ReentrancyGuard()
        self._next_asset_id: int = 1
        self._next_sequence: int = 0
        # One buffer per open atomic() block, innermost last
        self._staged_events: List[List[_StagedEvent]] = []

    # ========================================================================
    # ShareLedgerView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    def get_asset(self, asset_id: int) -> Asset:
        """
        Return the asset record.

        Raises:
            NotFoundError: If asset_id is unknown
        """
        asset = self.assets.get(asset_id)
        if asset is None:
            raise NotFoundError(f"Asset {asset_id} not found")
        return asset

    def get_balance(self, asset_id: int, holder: Identity) -> int:
        """
        Return holder's share count for asset (0 if never held).

        Raises:
            NotFoundError: If asset_id is unknown
        """
        self.get_asset(asset_id)
        return self.balances[asset_id].get(holder, 0)

    def get_balances(self, asset_id: int) -> Balances:
        """Return all non-zero balances for an asset."""
        self.get_asset(asset_id)
        return {h: q for h, q in self.balances[asset_id].items() if q != 0}

    def holder_history(self, asset_id: int) -> List[Identity]:
        """Return every identity ever holding the asset, in first-acquisition order."""
        self.get_asset(asset_id)
        return self.holders.history(asset_id)

    def list_assets(self) -> List[Asset]:
        """List all assets in creation order."""
        return [self.assets[a] for a in sorted(self.assets)]

    def find_listing(self, asset_id: int, seller: Identity) -> Optional[Listing]:
        """Return the seller's listing (active or not), or None."""
        return self.listings.get((asset_id, seller))

    def total_supply(self, asset_id: int) -> int:
        """Sum of all balances for an asset."""
        self.get_asset(asset_id)
        return sum(self.balances[asset_id].values())

    def verify_conservation(self) -> Dict[str, Any]:
        """
        Verify that every asset's balances sum to its fixed total supply.

        Returns:
            Dict with keys:
            - 'valid': bool - True if all conservation laws hold
            - 'supplies': Dict[int, int] - Current total supply for each asset
            - 'discrepancies': List[Dict] - One entry per violation with
              asset_id, expected, actual (and holder for negative balances)

        Example:
            result = ledger.verify_conservation()
            assert result['valid'], f"Conservation violated: {result['discrepancies']}"
        """
        supplies = {}
        discrepancies = []

        for asset_id, asset in self.assets.items():
            actual = self.total_supply(asset_id)
            supplies[asset_id] = actual
            if actual != asset.total_shares:
                discrepancies.append({
                    'asset_id': asset_id,
                    'expected': asset.total_shares,
                    'actual': actual,
                })
            for holder, qty in self.balances[asset_id].items():
                if qty < 0:
                    discrepancies.append({
                        'asset_id': asset_id,
                        'holder': holder,
                        'expected': 0,
                        'actual': qty,
                    })

        return {
            'valid': len(discrepancies) == 0,
            'supplies': supplies,
            'discrepancies': discrepancies,
        }

    def events(self, asset_id: Optional[int] = None, event_type: Optional[str] = None) -> List[LedgerEvent]:
        """Committed events, optionally filtered by asset and/or type."""
        return [
            e for e in self.event_log
            if (asset_id is None or e.asset_id == asset_id)
            and (event_type is None or e.event_type == event_type)
        ]

    # ========================================================================
    # MUTATION (call inside atomic())
    # ========================================================================

    def add_asset(
        self,
        name: str,
        location: str,
        metadata_ref: str,
        total_shares: int,
        price_per_share: Decimal,
        issuer: Identity,
    ) -> Asset:
        """
        Allocate the next asset id, store the record, and seed the issuer
        with the full supply. This is the only place shares come into being.
        """
        asset = Asset(
            asset_id=self._next_asset_id,
            name=name,
            location=location,
            metadata_ref=metadata_ref,
            total_shares=total_shares,
            price_per_share=price_per_share,
            issuer=issuer,
        )
        self._next_asset_id += 1
        self.assets[asset.asset_id] = asset
        self.balances[asset.asset_id] = {issuer: total_shares}
        self.holders.register(asset.asset_id, issuer)
        return asset

    def set_active(self, asset_id: int, active: bool) -> Asset:
        asset = replace(self.get_asset(asset_id), active=bool(active))
        self.assets[asset_id] = asset
        return asset

    def move(self, asset_id: int, source: Identity, dest: Identity, shares: int) -> Move:
        """
        Move shares between two holders.

        Raises:
            NotFoundError: If asset_id is unknown
            ValidationError: If dest is empty or shares is not positive
            InsufficientBalanceError: If source holds fewer than shares
        """
        self.get_asset(asset_id)
        move = Move(asset_id, source, dest, shares)
        bals = self.balances[asset_id]
        available = bals.get(source, 0)
        if available < shares:
            raise InsufficientBalanceError(
                f"{source} holds {available} of asset {asset_id}, needs {shares}",
                required=shares, available=available,
            )
        bals[source] = available - shares
        bals[dest] = bals.get(dest, 0) + shares
        self.holders.register(asset_id, dest)
        return move

    def put_listing(self, listing: Listing) -> None:
        self.listings[(listing.asset_id, listing.seller)] = listing

    def credit_pool(self, amount: Decimal) -> Decimal:
        self.payout_pool += to_money(amount)
        return self.payout_pool

    def debit_pool(self, amount: Decimal) -> Decimal:
        amount = to_money(amount)
        if amount > self.payout_pool:
            raise FundsError(
                f"Payout pool holds {self.payout_pool}, needs {amount}",
                required=amount, available=self.payout_pool,
            )
        self.payout_pool -= amount
        return self.payout_pool

    def emit(self, event_type: str, asset_id: Optional[int] = None, **params: Any) -> None:
        """
        Record an event. Inside atomic() it is staged until the outermost
        block commits; outside it is logged immediately.
        """
        staged = (event_type, asset_id, tuple(params.items()))
        if self._staged_events:
            self._staged_events[-1].append(staged)
        else:
            self._log_events([staged])

    # ========================================================================
    # COMMIT BOUNDARY
    # ========================================================================

    @contextmanager
    def atomic(self, label: str = "operation") -> Iterator[ShareLedger]:
        """
        Run a block as one all-or-nothing transaction.

        Nested blocks (e.g. an unguarded call made from inside a payment) join
        the enclosing transaction: their events reach the log only when the
        outermost block commits, and an outer failure undoes them too.
        """
        snapshot = self._snapshot()
        self._staged_events.append([])
        try:
            yield self
        except BaseException as e:
            # SystemExit and KeyboardInterrupt from a payment sink included
            self._restore(snapshot)
            self._staged_events.pop()
            if self.verbose and not self._staged_events:
                reason = str(e) if isinstance(e, ShareLedgerError) else repr(e)
                print(f"✗ REJECTED: {label}: {type(e).__name__}: {reason}")
            raise
        staged = self._staged_events.pop()
        if self._staged_events:
            self._staged_events[-1].extend(staged)
            return
        self._log_events(staged)
        if self.verbose:
            print(f"✓ APPLIED: {label} ({len(staged)} events)")

    @property
    def in_transaction(self) -> bool:
        return bool(self._staged_events)

    def _log_events(self, staged: List[_StagedEvent]) -> None:
        for event_type, asset_id, params in staged:
            self.event_log.append(LedgerEvent(
                sequence=self._next_sequence,
                event_type=event_type,
                asset_id=asset_id,
                params=params,
            ))
            self._next_sequence += 1

    def _snapshot(self) -> Tuple[Any, ...]:
        return (
            dict(self.assets),
            {a: dict(b) for a, b in self.balances.items()},
            self.holders.copy(),
            dict(self.listings),
            self.payout_pool,
            self._next_asset_id,
        )

    def _restore(self, snapshot: Tuple[Any, ...]) -> None:
        (self.assets, self.balances, self.holders,
         self.listings, self.payout_pool, self._next_asset_id) = snapshot

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> ShareLedger:
        """
        Create an independent deep copy of this ledger.

        Cloned state includes assets, balances, holder history, listings, the
        payout pool and the event log. The clone gets a fresh, unlocked guard
        and no open transactions.
        """
        cloned = ShareLedger(self.name, verbose=self.verbose)
        (cloned.assets, cloned.balances, cloned.holders,
         cloned.listings, cloned.payout_pool, cloned._next_asset_id) = self._snapshot()
        cloned.event_log = list(self.event_log)
        cloned._next_sequence = self._next_sequence
        return cloned
