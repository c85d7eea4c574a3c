# app/utils/id_generators.py
from datetime import datetime
from uuid import UUID

from app.utils.datetime_utils import clinic_tz, utc_now


def generate_bill_number(dispense_id: UUID, now: datetime | None = None) -> str:
    """
    Generate a dispensary bill number in format: {YYYYMMDD}-{clock}-{idSuffix}

    Where:
    - {YYYYMMDD} = issue date in the clinic timezone
    - {clock} = last 6 digits of the epoch milliseconds at issue time
    - {idSuffix} = last 5 hex characters of the dispense UUID

    Example: 20240101-482913-3fa9c

    Assigned once, when the first payment moves a bill out of pending.
    """
    now = now or utc_now()
    local = now.astimezone(clinic_tz())

    millis = int(now.timestamp() * 1000)
    clock = f"{millis % 1_000_000:06d}"
    id_suffix = dispense_id.hex[-5:]

    return f"{local:%Y%m%d}-{clock}-{id_suffix}"
