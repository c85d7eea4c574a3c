#!/usr/bin/env python3
# scripts/backfill_tokens.py
"""
Rebuild appointment_day and daily_token for every appointment.
This script is safe to run many times (idempotent).

Design notes:
- Appointments are grouped by the clinic day of appointment_date and numbered
  1..n by appointment_time (existing token breaks ties).
- Runs in a single transaction; --dry-run rolls it back.

Examples:
  python -m scripts.backfill_tokens
  python -m scripts.backfill_tokens --dry-run
"""

from __future__ import annotations

import argparse
import logging

from app.core.database import session_scope
from app.services.token_allocator import renumber_daily_tokens

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Backfill daily appointment tokens")
    parser.add_argument("--dry-run", action="store_true", help="Report changes without committing")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        with session_scope(commit=not args.dry_run) as db:
            updated = renumber_daily_tokens(db)
    except Exception:
        logger.exception("Token backfill failed")
        raise

    if args.dry_run:
        print(f"Dry run: {updated} appointments would be renumbered")
    else:
        print(f"Backfill complete. Updated {updated} appointments.")


if __name__ == "__main__":
    main()
