# app/schemas/medicine.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

NameStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]

OptStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=50),
]


class MedicineEnsure(BaseModel):
    """
    Master-record upsert. An existing (name, strength, form) is returned untouched;
    the remaining fields only seed a newly created record.
    """

    name: NameStr
    strength: OptStr = ""
    form: OptStr = ""
    salt: str | None = Field(default=None, max_length=255)
    cost_price: Decimal = Field(default=Decimal("0"), ge=0)
    selling_price: Decimal = Field(default=Decimal("0"), ge=0)
    stock: int = Field(default=0, ge=0)
    min_stock: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")


class MedicineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    strength: str
    form: str
    salt: str | None = None
    cost_price: Decimal
    selling_price: Decimal
    stock: int
    min_stock: int
    pending_pricing: bool
    is_active: bool
    created_at: datetime
