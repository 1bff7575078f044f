"""
guard.py - Reentrancy guard for payment-bearing operations.

A single bit per ledger. Entering while locked raises ReentrancyError before
the caller's operation has touched any state.
"""

from __future__ import annotations

from .core import ReentrancyError


class ReentrancyGuard:
    """
    One-bit mutex, used as a context manager:

        with ledger.guard:
            ...  # validate, apply effects, pay
    """

    def __init__(self):
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def __enter__(self) -> ReentrancyGuard:
        if self._locked:
            raise ReentrancyError("Reentrant call rejected: a guarded operation is in flight")
        self._locked = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._locked = False
