from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables

from .common.formatters import (
    format_date,
    format_datetime,
    format_minutes,
    format_status,
    format_time,
    status_css,
)
from .container import build_container
from .anomalies.controller import register as register_anomalies
from .attendance.controller import register as register_attendance
from .biometrics.controller import register as register_biometrics
from .exports.controller import register as register_exports
from .reprocessing.controller import register as register_reprocessing
from .retention.controller import register as register_retention
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__, template_folder="../../../templates", static_folder="../../../static")

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    root = Path(__file__).resolve().parents[3]
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=root / "database" / "schema.sql")
        logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=root / "database" / "seed.sql")
        ensure_demo_users(db_config)
        logger.info("Demo seed ready")

    container = build_container(
        db_config=db_config,
        per_page=int(getattr(settings, "RECORDS_PER_PAGE", 25)),
        anomaly_days=int(getattr(settings, "ANOMALY_DAYS", 7)),
    )

    register_routes(app, container)
    return app


def register_routes(app: Flask, container) -> None:
    app.jinja_env.filters.update(
        status_label=format_status,
        status_css=status_css,
        fdate=format_date,
        ftime=format_time,
        fdatetime=format_datetime,
        fminutes=format_minutes,
    )

    register_users(app, container)
    register_attendance(app, container)
    register_biometrics(app, container)
    register_anomalies(app, container)
    register_reprocessing(app, container)
    register_retention(app, container)
    register_exports(app, container)
