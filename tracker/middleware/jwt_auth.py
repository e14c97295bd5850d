"""
JWT Auth Middleware — authenticates every API request and sets ``g.current_user``.

Flow:
  1. Routes in ``JWT_SKIP_PREFIXES`` (login, health, invitation accept) are public.
  2. Everything else under ``/api/v1/`` needs ``Authorization: Bearer <token>``.
  3. The token's ``sub`` is re-loaded from the database on every request,
     so role and status changes apply immediately; a user who is no longer
     ACTIVE is rejected even with an unexpired token.

Failures raise ``AuthenticationError`` (401) and are rendered by the
app-level error handler.
"""

import logging

import jwt as pyjwt
from flask import g, request

from tracker.core.exceptions import AuthenticationError
from tracker.models import db
from tracker.models.auth import STATUS_ACTIVE, User
from tracker.services.jwt_service import decode_token

logger = logging.getLogger(__name__)

JWT_SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/health",
    "/api/v1/users/accept-invitation",
)


def _bearer_token():
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return auth_header[7:].strip() or None


def load_user_from_token(token: str) -> User:
    """Decode ``token`` and return the ACTIVE user it names."""
    try:
        payload = decode_token(token)
    except pyjwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except pyjwt.InvalidTokenError as exc:
        logger.info("Rejected JWT: %s", exc)
        raise AuthenticationError("Invalid token")

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid token")

    user = db.session.get(User, user_id)
    if user is None or user.status != STATUS_ACTIVE:
        raise AuthenticationError("User is not active")
    return user


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.current_user = None

        path = request.path
        if not path.startswith("/api/v1/") or request.method == "OPTIONS":
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        token = _bearer_token()
        if token is None:
            raise AuthenticationError("Missing bearer token")

        g.current_user = load_user_from_token(token)
