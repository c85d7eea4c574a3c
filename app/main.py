import logging

from fastapi import FastAPI

from app.core.config import get_settings
from app.api.v1.router import api_router

# Registers cross-aggregate event subscribers
from app.services import event_handlers  # noqa: F401

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Clinic Operations Backend",
)


@app.get("/health", tags=["health"])
async def root_health() -> dict:
    """
    Global health check endpoint.
    """
    return {"status": "ok"}


# Mount versioned API router
app.include_router(api_router, prefix=settings.api_v1_prefix)
