# app/models/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base shared by the clinic tables (patients, doctors,
    appointments, medicines, dispenses).

    app.models imports every model so Base.metadata is complete for
    Alembic and for create_all() in tests.
    """
