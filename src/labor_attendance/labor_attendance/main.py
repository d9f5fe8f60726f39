from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .access_requests.controller import register as register_access_requests
from .attendance.controller import register as register_attendance
from .closings.controller import register as register_closings
from .common.http import register_error_handlers
from .container import build_container
from .database.bootstrap import apply_schema, ensure_default_site, list_tables
from .workers.controller import register as register_workers

logger = logging.getLogger(__name__)


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _build_extractor(settings):
    if not bool(getattr(settings, "ENABLE_IMAGE_CAPTURE", False)):
        return None
    # pulls in face_recognition/OpenCV; only installed with the "vision" extra
    from .biometrics.extractor import FaceRecognitionExtractor

    return FaceRecognitionExtractor()


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(str(getattr(settings, "LOG_LEVEL", "INFO")))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))

    logger.info(
        f"settings={settings_module} db={db_config.get('user')}@{db_config.get('host')}:"
        f"{db_config.get('port', 3306)}/{db_config.get('database')}"
    )

    auto_init_db = bool(getattr(settings, "AUTO_INIT_DB", False))
    auto_seed_db = bool(getattr(settings, "AUTO_SEED_DB", False))
    if auto_init_db:
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info(f"Schema ready (tables={len(list_tables(db_config))})")
    if auto_seed_db:
        ensure_default_site(db_config, getattr(settings, "DEFAULT_SITE"))

    container = build_container(db_config=db_config, settings=settings, extractor=_build_extractor(settings))

    register_error_handlers(app)
    register_attendance(app, container)
    register_access_requests(app, container)
    register_closings(app, container)
    register_workers(app, container)

    return app
