from decimal import Decimal, InvalidOperation

import pytest

from app.models.appointment import PaymentStatus
from app.services.payment_status import derive_payment_status, money2, payable_amount


@pytest.mark.parametrize(
    "paid, amount, discount, expected",
    [
        (0, 100, 0, PaymentStatus.PENDING),
        (50, 100, 0, PaymentStatus.PARTIAL),
        (100, 100, 0, PaymentStatus.PAID),
        (100, 100, 20, PaymentStatus.PAID),
        (60, 100, 20, PaymentStatus.PARTIAL),
        (80, 100, 20, PaymentStatus.PAID),
        (150, 100, 0, PaymentStatus.PAID),
    ],
)
def test_derive_payment_status(paid, amount, discount, expected):
    assert derive_payment_status(paid, amount, discount) == expected


def test_payable_amount_is_floored_at_zero():
    assert payable_amount(100, 150) == Decimal("0")
    assert payable_amount("99.50", "9.50") == Decimal("90.00")


def test_missing_amount_counts_as_zero():
    # Any payment against an unpriced appointment settles it
    assert derive_payment_status(0, None, 0) == PaymentStatus.PENDING
    assert derive_payment_status(10, None, None) == PaymentStatus.PAID


def test_discount_beyond_amount_with_payment_is_paid():
    assert derive_payment_status(1, 100, 200) == PaymentStatus.PAID


def test_money2_rounds_half_up():
    assert money2("2.345") == Decimal("2.35")
    assert money2(None) == Decimal("0.00")


@pytest.mark.parametrize("bad", ["abc", "12,50", "n/a"])
def test_unparsable_amount_raises(bad):
    with pytest.raises(InvalidOperation):
        derive_payment_status(bad, 100)
    with pytest.raises(InvalidOperation):
        payable_amount(100, bad)


def test_blank_amount_counts_as_zero():
    assert payable_amount("", "") == Decimal("0")
