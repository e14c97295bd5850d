"""
Role decorators for route protection.

Usage:
    @project_bp.route("/projects", methods=["POST"])
    @require_roles(ROLE_ADMIN)
    def create_project():
        ...

The JWT middleware has already loaded ``g.current_user``; these decorators
only compare its role. Finer rules (ownership, project membership) live in
the services.
"""

import functools
import logging

from flask import g

from tracker.core.exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)


def current_user():
    """The authenticated caller, or AuthenticationError."""
    user = getattr(g, "current_user", None)
    if user is None:
        raise AuthenticationError()
    return user


def require_roles(*roles: str):
    """Decorator: caller's role must be one of ``roles``."""
    allowed = frozenset(roles)

    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            user = current_user()
            if user.role not in allowed:
                logger.warning(
                    "User %d (%s) denied on %s: requires %s",
                    user.id, user.role, f.__name__, "/".join(sorted(allowed)),
                )
                raise AuthorizationError("Insufficient permissions")
            return f(*args, **kwargs)
        return decorated
    return decorator
