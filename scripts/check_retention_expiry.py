"""Warn about biometric records that will be removed by retention soon."""

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

from src.biometric_attendance.biometric_attendance.container import build_container
from src.biometric_attendance.biometric_attendance.core.exceptions import DomainError
from src.biometric_attendance.biometric_attendance.main import configure_logging

logger = logging.getLogger("check_retention_expiry")


def main(argv=None) -> int:
    settings = importlib.import_module(get_settings_module())
    parser = argparse.ArgumentParser(description="List biometric records expiring within N days.")
    parser.add_argument("--days", type=int, default=int(getattr(settings, "RETENTION_WARNING_DAYS", 7)))
    args = parser.parse_args(argv)

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG))
    try:
        warnings = container.retention_service.check_expiry(days=args.days)
    except DomainError as e:
        logger.error("%s", e)
        return 1

    if not warnings:
        logger.info("No biometric records expire in the next %s day(s)", args.days)
    return 0


if __name__ == "__main__":
    sys.exit(main())
