"""Shared utility functions used by services and blueprints.

parse_date_input:  ISO / DD.MM.YYYY date parsing, raises ValueError
parse_positive_int: tolerant int coercion for ids arriving as strings
get_json_body:     request body as a dict, ValidationError otherwise
commit_or_rollback: commit the session, roll back and re-raise on failure
"""
import logging
from datetime import date, datetime

from flask import request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tracker.core.exceptions import ValidationError
from tracker.models import db

logger = logging.getLogger(__name__)

# largest value an INTEGER column holds on PostgreSQL
MAX_DB_INT = 2**31 - 1


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Supports: YYYY-MM-DD, full ISO datetimes (date part kept), DD.MM.YYYY,
    and date objects.  Empty input returns None.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = str(value).strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return datetime.strptime(value, "%d.%m.%Y").date()
    except ValueError as exc:
        raise ValueError(
            "Invalid date format. Use YYYY-MM-DD or DD.MM.YYYY."
        ) from exc


def parse_positive_int(value):
    """Return ``value`` as a positive int that fits an id column, or None.

    Booleans are rejected even though ``bool`` subclasses ``int``.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        parsed = value
    else:
        try:
            parsed = int(str(value).strip())
        except (TypeError, ValueError):
            return None
    return parsed if 0 < parsed <= MAX_DB_INT else None


def get_json_body() -> dict:
    """Return the JSON request body, which must be an object."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError(
            "Request body must be a JSON object",
            details=[{"field": "body", "message": "JSON object required"}],
        )
    return data


# ── Database commit helper ───────────────────────────────────────────────────

def commit_or_rollback():
    """Commit the current SQLAlchemy session; on failure roll back and re-raise.

    IntegrityError is logged at WARNING (constraint violations are usually
    a race on a unique value); anything else is logged with a stack trace.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        raise
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Database error on commit")
        raise
