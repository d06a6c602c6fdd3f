"""Application factory for the valut rate synchroniser."""

from __future__ import annotations

from flask import Flask
from flask_smorest import Api

from config import get_config
from .database import init_app as init_db
from .cli import register_cli
from .logging import setup_logging


def create_app(config_name: str | None = None) -> Flask:
    """Application factory adhering to the Flask app factory pattern.

    The refresh loop is built but not started; see
    :func:`valut.services.scheduler.init_scheduler`.
    """

    app = Flask(__name__)
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    setup_logging(app)
    _configure_api(app)
    api = _register_extensions(app)
    _register_blueprints(app, api)

    register_cli(app)
    return app


def _configure_api(app: Flask) -> None:
    app.config.setdefault("API_TITLE", "valut")
    app.config.setdefault("API_VERSION", "v1")
    app.config.setdefault("OPENAPI_VERSION", "3.0.3")


def _register_extensions(app: Flask) -> Api:
    init_db(app)
    from . import models  # noqa: F401  # Ensure models are imported for metadata
    from .services import build_refresh_loop, init_refresher

    init_refresher(app)
    build_refresh_loop(app)

    return Api(app)


def _register_blueprints(app: Flask, api: Api) -> None:
    """Register Flask blueprints."""

    from .health import blp as health_blp

    api.register_blueprint(health_blp, url_prefix="/health")
