#!/usr/bin/env python3
"""
Daily storage cost run

Intended for cron, e.g. once a day after midnight:
    5 0 * * * python scripts/run_daily_storage_calc.py
"""
import argparse
import sys
from datetime import datetime

from gudang.core.database import SessionLocal
from gudang.core.logging import get_logger, setup_logging
from gudang.services.daily_job import DailyStorageJob

logger = get_logger("business")


def main():
    parser = argparse.ArgumentParser(description="Recompute storage cost for all accruing movements")
    parser.add_argument(
        "--as-of",
        type=datetime.fromisoformat,
        default=None,
        help="Run as of this UTC timestamp (ISO format) instead of now",
    )
    args = parser.parse_args()

    setup_logging()

    db = SessionLocal()
    try:
        result = DailyStorageJob(db).run(now=args.as_of)
    finally:
        db.close()

    logger.info(
        f"Processed {result['total_processed']} movements: {result['success_count']} ok, "
        f"{result['error_count']} failed, total Rp {result['total_biaya_hari_ini']}"
    )
    for error in result["errors"]:
        logger.error(f"Movement {error['stock_movement_id']}: {error['message']}")
    return 1 if result["error_count"] else 0


if __name__ == "__main__":
    sys.exit(main())
