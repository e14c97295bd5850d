"""
Activity Tracker API.

``create_app(name)`` builds the Flask app for one of the environments in
``tracker.config`` ("development", "testing", "production"); without a
name it reads ``APP_ENV``.
"""

import logging
import os

from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import event
from sqlalchemy.engine import Engine

from tracker.config import config
from tracker.middleware.jwt_auth import init_jwt_middleware
from tracker.middleware.logging_config import configure_logging
from tracker.middleware.rate_limiter import init_rate_limits
from tracker.middleware.security_headers import init_security_headers
from tracker.middleware.timing import init_request_timing
from tracker.models import db
from tracker.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

_JSON_METHODS = frozenset({"POST", "PUT", "PATCH"})

migrate = Migrate()
# limits are attached per blueprint in init_rate_limits
limiter = Limiter(key_func=get_remote_address, default_limits=[])


@event.listens_for(Engine, "connect")
def _sqlite_foreign_keys(dbapi_conn, _record):
    # SQLite ignores ON DELETE rules unless asked per connection
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _cors_origins(raw):
    if not raw or raw.strip() == "*":
        return "*"
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def _init_request_guards(app):
    @app.before_request
    def _reject_bad_bodies():
        limit = app.config.get("MAX_CONTENT_LENGTH")
        if limit and (request.content_length or 0) > limit:
            abort(413, description="Request body too large")
        if (
            request.method in _JSON_METHODS
            and request.path.startswith("/api/")
            and request.data
            and not request.is_json
        ):
            abort(415, description="Content-Type must be application/json")


def _create_tables(app):
    # importing the model modules registers their tables on db.metadata
    from tracker.models import activity, audit, auth, finance, project, reference  # noqa: F401

    uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if uri.startswith("sqlite:///") and ":memory:" not in uri:
        os.makedirs(os.path.dirname(uri[len("sqlite:///"):]), exist_ok=True)
    with app.app_context():
        db.create_all()


def create_app(config_name=None):
    config_name = config_name or os.getenv("APP_ENV", "development")
    if config_name not in config:
        raise ValueError(f"Unknown configuration {config_name!r}; expected one of {sorted(config)}")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())
    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    CORS(app, origins=_cors_origins(app.config.get("CORS_ORIGINS")))

    # after_request hooks run in reverse registration order
    init_security_headers(app)
    init_request_timing(app)
    _init_request_guards(app)
    init_jwt_middleware(app)

    _create_tables(app)

    from tracker.blueprints import ALL_BLUEPRINTS

    for blueprint in ALL_BLUEPRINTS:
        app.register_blueprint(blueprint)
    register_error_handlers(app)
    init_rate_limits(app, limiter)

    logger.info("Activity Tracker app created (%s)", config_name)
    return app
