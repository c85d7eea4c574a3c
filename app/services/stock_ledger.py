# app/services/stock_ledger.py
"""
Medicine stock adjustments driven by dispensary bills.

Every line item becomes a signed delta: +quantity to restore, -quantity to consume.
Nothing here commits; the dispense service flushes and commits the bill and its
stock movements as one transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.medicine import Medicine

logger = logging.getLogger(__name__)

RESTORE = 1
CONSUME = -1


class LedgerItem(Protocol):
    name: str
    quantity: int
    strength: str | None
    form: str | None


@dataclass(frozen=True)
class StockAdjustment:
    item_name: str
    medicine_id: UUID | None
    requested: int
    before: int | None = None
    after: int | None = None

    @property
    def skipped(self) -> bool:
        """No catalog entry matched the item, so nothing moved."""
        return self.medicine_id is None

    @property
    def floored(self) -> bool:
        """Consumption exceeded stock and was clamped at zero."""
        return (
            self.before is not None
            and self.after is not None
            and self.requested < 0
            and self.after - self.before != self.requested
        )


def find_medicine(db: Session, name: str, strength: str | None, form: str | None) -> Medicine | None:
    """
    Exact (name, strength, form) match first, then any medicine with that name.
    """
    medicine = (
        db.query(Medicine)
        .filter(
            Medicine.name == name,
            Medicine.strength == (strength or ""),
            Medicine.form == (form or ""),
        )
        .with_for_update()
        .first()
    )
    if medicine is None:
        medicine = (
            db.query(Medicine)
            .filter(Medicine.name == name)
            .order_by(Medicine.created_at.asc(), Medicine.id.asc())
            .with_for_update()
            .first()
        )
    return medicine


def apply_delta(db: Session, items: Iterable[LedgerItem], sign: int) -> list[StockAdjustment]:
    """
    Move stock by sign * quantity for each item.

    Downward moves floor at zero instead of failing. Items with no catalog entry
    are skipped and logged.
    """
    if sign not in (RESTORE, CONSUME):
        raise ValueError("sign must be +1 (restore) or -1 (consume)")

    adjustments: list[StockAdjustment] = []
    for item in items:
        quantity = int(item.quantity or 0)
        delta = sign * quantity

        medicine = find_medicine(db, item.name, item.strength, item.form)
        if medicine is None:
            logger.info("Stock adjustment skipped, no catalog entry for item=%s", item.name)
            adjustments.append(StockAdjustment(item_name=item.name, medicine_id=None, requested=delta))
            continue

        before = int(medicine.stock or 0)
        after = max(0, before + delta)
        if before + delta < 0:
            logger.warning(
                "Stock floored at zero medicine=%s stock=%s requested=%s",
                medicine.id,
                before,
                delta,
            )
        medicine.stock = after
        # Later lookups in this pass may re-read the row
        db.flush()

        adjustments.append(
            StockAdjustment(
                item_name=item.name,
                medicine_id=medicine.id,
                requested=delta,
                before=before,
                after=after,
            )
        )

    return adjustments


def reconcile(
    db: Session,
    old_items: Iterable[LedgerItem],
    new_items: Iterable[LedgerItem],
) -> list[StockAdjustment]:
    """
    Revert-then-reapply for an edited bill.

    The full old list is restored before any new item is consumed, so an item
    present on both sides never sees a transient shortfall.
    """
    old_items = list(old_items)
    new_items = list(new_items)
    restored = apply_delta(db, old_items, RESTORE)
    consumed = apply_delta(db, new_items, CONSUME)
    return restored + consumed
