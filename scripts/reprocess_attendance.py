"""Rebuild attendance rows from stored biometric scans.

    python scripts/reprocess_attendance.py --start 2025-11-01 --end 2025-11-30 [--user 12 --user 15] [--keep]
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.biometric_attendance.biometric_attendance.common.datetime_utils import parse_optional_date
from src.biometric_attendance.biometric_attendance.container import build_container
from src.biometric_attendance.biometric_attendance.core.exceptions import DomainError
from src.biometric_attendance.biometric_attendance.main import configure_logging

logger = logging.getLogger("reprocess_attendance")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reprocess biometric scans into attendance rows.")
    parser.add_argument("--start", required=True, help="First scan date (YYYY-MM-DD)")
    parser.add_argument("--end", required=True, help="Last scan date (YYYY-MM-DD)")
    parser.add_argument("--user", type=int, action="append", default=[], help="Limit to a user id (repeatable)")
    parser.add_argument("--keep", action="store_true", help="Keep existing attendance rows in the range")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG))
    try:
        start = parse_optional_date(args.start, "Start date")
        end = parse_optional_date(args.end, "End date")
        result = container.reprocessing_service.reprocess(start, end, args.user, delete_existing=not args.keep)
    except DomainError as e:
        logger.error("%s", e)
        return 1

    for detail in result.details:
        logger.info("%s: %s shift(s) from %s record(s)", detail["user"], detail["shifts_processed"], detail["records_count"])
    for error in result.errors:
        logger.error("%s: %s", error["user"], error["error"])
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
