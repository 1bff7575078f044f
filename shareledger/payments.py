"""
payments.py - Outbound payments to externally controlled recipients.

The ledger never holds recipients' money itself. Every payout goes through a
PaymentSink, which may fail or call back into the exchange while it runs.
send_payment() is the single place foreign code is invoked; any failure there
surfaces as PaymentError so the enclosing atomic() block rolls back.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Dict, List, Tuple

from .core import Identity, PaymentSink, PaymentError, ZERO, to_money


def send_payment(sink: PaymentSink, recipient: Identity, amount: Decimal) -> None:
    """
    Deliver amount to recipient through sink.

    Raises:
        PaymentError: If the sink returns a falsy result or raises. The sink's
            own exception is chained as __cause__.
    """
    try:
        delivered = sink.pay(recipient, amount)
    except Exception as e:
        raise PaymentError(
            f"Payment of {amount} to {recipient} failed: {e}", required=amount
        ) from e
    if not delivered:
        raise PaymentError(f"Payment of {amount} to {recipient} was refused", required=amount)


class AccountBook:
    """
    In-memory PaymentSink crediting one account per recipient.

    Recipients listed in ``rejecting`` refuse delivery, which is how a
    recipient that cannot accept funds is modeled.

    Example:
        book = AccountBook()
        book.pay("alice", Decimal("10"))
        assert book.balance("alice") == Decimal("10")
    """

    def __init__(self, rejecting: Tuple[Identity, ...] = ()):
        self.accounts: Dict[Identity, Decimal] = {}
        self.payments: List[Tuple[Identity, Decimal]] = []
        self.rejecting = set(rejecting)

    def pay(self, recipient: Identity, amount: Decimal) -> bool:
        if recipient in self.rejecting:
            return False
        amount = to_money(amount)
        self.accounts[recipient] = self.accounts.get(recipient, ZERO) + amount
        self.payments.append((recipient, amount))
        return True

    def balance(self, recipient: Identity) -> Decimal:
        return self.accounts.get(recipient, ZERO)

    def total_paid(self) -> Decimal:
        return sum((a for _, a in self.payments), ZERO)
