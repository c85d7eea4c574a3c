import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import pytest

from app.services.stock_ledger import CONSUME, RESTORE, apply_delta, find_medicine, reconcile


@dataclass
class Line:
    name: str
    quantity: int
    strength: str | None = None
    form: str | None = None


def test_exact_match_preferred_over_name_only(db, make_medicine):
    plain = make_medicine("Paracetamol", 10)
    exact = make_medicine("Paracetamol", 10, strength="500mg", form="tablet")

    apply_delta(db, [Line("Paracetamol", 3, "500mg", "tablet")], CONSUME)
    db.commit()

    db.refresh(plain)
    db.refresh(exact)
    assert (exact.stock, plain.stock) == (7, 10)


def test_name_only_fallback_uses_oldest_record(db, make_medicine):
    oldest = make_medicine("Amoxicillin", 20, strength="250mg", form="capsule")
    newer = make_medicine("Amoxicillin", 20, strength="500mg", form="capsule")
    oldest.created_at = datetime(2023, 1, 1, tzinfo=timezone.utc)
    newer.created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    db.commit()

    found = find_medicine(db, "Amoxicillin", "125mg", "syrup")

    assert found.id == oldest.id


def test_missing_strength_and_form_match_empty_strings(db, make_medicine):
    med = make_medicine("ORS", 4)

    [adjustment] = apply_delta(db, [Line("ORS", 1)], CONSUME)

    assert adjustment.medicine_id == med.id
    assert (adjustment.before, adjustment.after) == (4, 3)


def test_consumption_floors_at_zero(db, make_medicine, caplog):
    med = make_medicine("Cetirizine", 2)

    with caplog.at_level(logging.WARNING, logger="app.services.stock_ledger"):
        [adjustment] = apply_delta(db, [Line("Cetirizine", 5)], CONSUME)
    db.commit()

    db.refresh(med)
    assert med.stock == 0
    assert adjustment.floored
    assert "floored" in caplog.text


def test_unmatched_item_is_skipped(db, make_medicine):
    med = make_medicine("Ibuprofen", 5)

    adjustments = apply_delta(db, [Line("Unknown syrup", 2), Line("Ibuprofen", 1)], CONSUME)
    db.commit()

    assert [a.skipped for a in adjustments] == [True, False]
    db.refresh(med)
    assert med.stock == 4


def test_restore_adds_back(db, make_medicine):
    med = make_medicine("Ibuprofen", 5)

    apply_delta(db, [Line("Ibuprofen", 3)], RESTORE)
    db.commit()

    db.refresh(med)
    assert med.stock == 8


def test_invalid_sign_is_rejected(db):
    with pytest.raises(ValueError):
        apply_delta(db, [Line("Ibuprofen", 1)], 2)


def test_reconcile_restores_before_consuming(db, make_medicine):
    # Stock 0 after the original bill consumed everything; the edit keeps the same quantity
    med = make_medicine("Azithromycin", 0)

    reconcile(db, [Line("Azithromycin", 3)], [Line("Azithromycin", 3)])
    db.commit()

    db.refresh(med)
    assert med.stock == 0

    reconcile(db, [Line("Azithromycin", 3)], [Line("Azithromycin", 1)])
    db.commit()

    db.refresh(med)
    assert med.stock == 2
