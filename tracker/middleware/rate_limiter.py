"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter. The Limiter instance
is created in ``tracker/__init__.py`` with no default limits; this module
decides which blueprint gets which budget.

Usage:
    from tracker.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

from flask import g, request as flask_request

logger = logging.getLogger(__name__)

LOGIN_LIMIT = "10/minute"
API_LIMIT = "200/minute"

_API_BLUEPRINTS = ("activity", "dashboard", "reference", "project", "user", "finance")


def rate_limit_key():
    """Authenticated callers are limited per user, anonymous ones per IP."""
    user = getattr(g, "current_user", None)
    if user is not None:
        return f"user:{user.id}"
    return flask_request.remote_addr or "unknown"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits:
        - Auth (login):   10/minute per IP (credential stuffing)
        - Other API:      200/minute per user
        - Health check:   exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    bp = app.blueprints.get("auth")
    if bp:
        limiter.limit(LOGIN_LIMIT, key_func=lambda: flask_request.remote_addr or "unknown")(bp)

    for bp_name in _API_BLUEPRINTS:
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(API_LIMIT, key_func=rate_limit_key)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured: login=%s api=%s", LOGIN_LIMIT, API_LIMIT)
