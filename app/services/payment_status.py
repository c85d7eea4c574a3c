# app/services/payment_status.py
"""
Tri-state payment status shared by appointments and dispensary bills.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from app.models.appointment import PaymentStatus


def D(x) -> Decimal:
    """Missing amounts count as zero; anything unparsable raises decimal.InvalidOperation."""
    if x is None or x == "":
        return Decimal("0")
    return Decimal(str(x))


def money2(x) -> Decimal:
    return D(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def payable_amount(amount, discount=0) -> Decimal:
    """amount - discount, floored at zero."""
    return max(Decimal("0"), D(amount) - D(discount))


def derive_payment_status(paid, amount, discount=0) -> PaymentStatus:
    """
    pending when nothing was paid, partial while paid < payable, paid otherwise.

    Never returns CANCELLED; cancellation is a lifecycle decision, not a money one.
    """
    paid = D(paid)
    if paid <= 0:
        return PaymentStatus.PENDING
    if paid < payable_amount(amount, discount):
        return PaymentStatus.PARTIAL
    return PaymentStatus.PAID
