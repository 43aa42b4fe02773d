from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .attendance.sweeper import start_sweeper
from .common.datetime_utils import utc_now
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig, DatabaseConnection

logger = logging.getLogger(__name__)

_TRACKING_KEYS = ("HALF_DAY_OUT_MINUTES", "ABSENT_OUT_MINUTES", "MAX_OUT_COUNT", "HEARTBEAT_TIMEOUT_MINUTES")


def configure_logging(level: str, fmt: str) -> None:
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=fmt)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(
        getattr(settings, "LOG_LEVEL", "INFO"),
        getattr(settings, "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(conn, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(conn)))

        container = build_container(
            db_config=db_config,
            office_defaults=getattr(settings, "OFFICE_DEFAULTS"),
            tracking={k: getattr(settings, k) for k in _TRACKING_KEYS if hasattr(settings, k)},
        )

        if bool(getattr(settings, "ENABLE_TIMEOUT_SWEEPER", True)):
            app.extensions["timeout_scheduler"] = start_sweeper(
                container.timeout_sweeper,
                interval_minutes=int(getattr(settings, "SWEEP_INTERVAL_MINUTES", 5)),
            )

    app.extensions["container"] = container

    @app.route("/health", endpoint="health")
    def health():
        return jsonify({"success": True, "message": "Server is running", "timestamp": utc_now().isoformat() + "Z"})

    register_attendance(app, container)

    return app
