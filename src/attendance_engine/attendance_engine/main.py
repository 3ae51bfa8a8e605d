from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .core.exceptions import ComputationError, ValidationError
from .core.policy import EnginePolicy
from .database.bootstrap import apply_schema, list_tables
from .metrics.controller import register as register_metrics
from .resolver.controller import register as register_resolver
from .resolver.scheduler import build_scheduler

logger = logging.getLogger(__name__)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(ComputationError)
    def handle_computation_error(exc: ComputationError):
        logger.error("Computation failed: %s", exc)
        return jsonify({"error": "computation failed", "skipped": exc.skipped, "errored": exc.errored}), 503


def create_app(container: Container | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module, db_config.get("user"), db_config.get("host"),
        db_config.get("port", 3306), db_config.get("database"),
    )

    if container is None:
        policy = EnginePolicy.from_mapping(getattr(settings, "ENGINE_POLICY", {}))
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        container = build_container(db_config=db_config, policy=policy)

    app.extensions["attendance_engine"] = container

    _register_error_handlers(app)
    register_metrics(app, container)
    register_attendance(app, container)
    register_resolver(app, container)

    if bool(getattr(settings, "SCHEDULER_ENABLED", False)) and not app.config["TESTING"]:
        scheduler = build_scheduler(container.resolver, policy=container.policy)
        scheduler.start()
        app.extensions["attendance_engine_scheduler"] = scheduler
        logger.info("Missing punch-out resolver scheduled every %d min", container.policy.resolver_interval_minutes)

    return app
