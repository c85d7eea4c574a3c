# app/services/event_handlers.py
"""
Subscribers for cross-aggregate events. Importing this module registers them.
"""

from sqlalchemy.orm import Session

from app.services.appointment_service import mark_prescription_dispensed
from app.services.events import DispenseCreated, subscribe


@subscribe(DispenseCreated)
def on_dispense_created(db: Session, event: DispenseCreated) -> None:
    """A dispense against an appointment closes that visit as prescription-dispensed."""
    if event.appointment_id is None:
        return
    mark_prescription_dispensed(db, event.appointment_id)
