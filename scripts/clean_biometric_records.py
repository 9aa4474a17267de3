"""Delete biometric records past their site's retention cutoff."""

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
from src.biometric_attendance.biometric_attendance.main import configure_logging

logger = logging.getLogger("clean_biometric_records")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Apply retention policies to biometric records.")
    parser.add_argument("--dry-run", action="store_true", help="Only count what would be deleted")
    args = parser.parse_args(argv)

    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG))
    report = container.retention_service.cleanup(dry_run=args.dry_run)

    for site in report.sites:
        logger.info(
            "%s: %s record(s) before %s (%s months)",
            site.site_name,
            site.count,
            site.cutoff,
            site.retention_months,
        )
    logger.info("%s %s record(s) total", "Would delete" if report.dry_run else "Deleted", report.total)
    return 0


if __name__ == "__main__":
    sys.exit(main())
