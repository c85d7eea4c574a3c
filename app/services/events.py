# app/services/events.py
"""
In-process domain events between aggregates.

A dispense does not reach into appointment state itself; it publishes an event
after its own transaction commits and subscribed handlers react to it.
Handlers are best-effort: a failing handler is logged and never undoes the
publisher's committed work.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable
from uuid import UUID

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

Handler = Callable[[Session, Any], None]

_handlers: dict[type, list[Handler]] = defaultdict(list)


@dataclass(frozen=True)
class DispenseCreated:
    dispense_id: UUID
    appointment_id: UUID | None


def subscribe(event_type: type) -> Callable[[Handler], Handler]:
    def decorator(handler: Handler) -> Handler:
        if handler not in _handlers[event_type]:
            _handlers[event_type].append(handler)
        return handler

    return decorator


def publish(db: Session, event: Any) -> None:
    for handler in list(_handlers.get(type(event), ())):
        try:
            handler(db, event)
        except Exception:
            db.rollback()
            logger.exception(
                "Non-fatal: event handler %s failed for %s",
                getattr(handler, "__name__", handler),
                event,
            )
