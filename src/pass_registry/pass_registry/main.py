from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .assets.controller import register as register_assets
from .common.log import setup_logging
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_admin_user, list_tables
from .imports.controller import register as register_imports
from .passes.controller import register as register_passes
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    """App factory. Pass a prebuilt `container` to skip the database wiring (tests)."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_CONTENT_LENGTH", 16 * 1024 * 1024))

    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), log_file=getattr(settings, "LOG_FILE", None))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module, db_config.get("user"), db_config.get("host"),
            db_config.get("port", 3306), db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_admin_user(
                db_config,
                username=getattr(settings, "ADMIN_USERNAME", "admin"),
                password=getattr(settings, "ADMIN_PASSWORD", "admin123"),
            )

        container = build_container(
            db_config=db_config,
            upload_dir=getattr(settings, "UPLOAD_DIR", "uploads"),
            base_offsets=getattr(settings, "PASS_ID_BASE_OFFSETS", None),
            max_retries=int(getattr(settings, "PASS_ID_MAX_RETRIES", 3)),
            max_import_rows=int(getattr(settings, "MAX_IMPORT_ROWS", 5000)),
        )

    app.extensions["pass_registry"] = container

    register_users(app, container)
    register_passes(app, container)
    register_imports(app, container)
    register_assets(app, container)

    return app
