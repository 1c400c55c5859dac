from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .automark.controller import register as register_automark
from .batch.controller import register as register_batch
from .common.logging_setup import configure_logging
from .common.web import register_error_handlers
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .reconciliation.controller import register as register_reconciliation
from .settings.controller import register as register_settings

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[2] / "database"


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["API_TOKEN"] = getattr(settings, "API_TOKEN", "")

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
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            logger.info("Demo seed ready")

        container = build_container(
            db_config=db_config,
            lock_timeout=float(getattr(settings, "LOCK_TIMEOUT_SECONDS", 10)),
            batch_max_workers=int(getattr(settings, "BATCH_MAX_WORKERS", 4)),
            timezone=getattr(settings, "TIMEZONE", None),
        )

        if bool(getattr(settings, "START_SCHEDULER", False)):
            container.settings_service.add_listener(container.scheduler.reschedule)
            container.scheduler.start()

    app.extensions["hostel_attendance"] = container

    register_error_handlers(app)
    register_attendance(app, container)
    register_batch(app, container)
    register_reconciliation(app, container)
    register_automark(app, container)
    register_settings(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return {"status": "ok"}

    return app
