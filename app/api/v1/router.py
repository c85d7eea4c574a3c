# app/api/v1/router.py
from fastapi import APIRouter

from app.api.v1.endpoints import (
    appointments,
    dispensary,
    medicines,
)

api_router = APIRouter()

api_router.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
api_router.include_router(dispensary.router, prefix="/dispensary", tags=["dispensary"])
api_router.include_router(medicines.router, prefix="/medicines", tags=["medicines"])
