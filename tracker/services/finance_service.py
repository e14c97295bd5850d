"""
Finance service — project funding lines.

Read scope comes from ``resolve_finance_scope`` (FIELD users are refused).
Create/update require ADMIN or a MANAGER member of the project; delete is
ADMIN only and gated in the blueprint.
"""

import logging
import re
from decimal import Decimal, InvalidOperation

from sqlalchemy import func

from tracker.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from tracker.models import db
from tracker.models.audit import write_audit
from tracker.models.auth import ROLE_ADMIN, ROLE_MANAGER
from tracker.models.finance import (
    DEFAULT_CURRENCY,
    FINANCE_STATUSES,
    MAX_YEAR,
    MIN_YEAR,
    Finance,
)
from tracker.models.project import Project
from tracker.services.scope_resolver import can_access_project, resolve_finance_scope
from tracker.utils.helpers import commit_or_rollback, parse_positive_int

logger = logging.getLogger(__name__)

_CURRENCY_RE = re.compile(r"^[A-Za-z]{3}$")


def list_finances(user) -> list[dict]:
    scope = resolve_finance_scope(user)
    rows = (
        Finance.query
        .filter(scope.clause(Finance))
        .order_by(Finance.created_at.desc(), Finance.id.desc())
        .all()
    )
    return [f.to_dict() for f in rows]


def budget_overview(user) -> dict:
    scope = resolve_finance_scope(user)
    total, count = (
        db.session.query(func.coalesce(func.sum(Finance.amount), 0), func.count(Finance.id))
        .filter(scope.clause(Finance))
        .one()
    )
    total = float(total or 0)
    return {
        "totalBudget": total,
        "averageBudget": round(total / count, 2) if count else 0,
        "recordCount": count,
    }


# ── Validation ───────────────────────────────────────────────────────────────

def _clean(data: dict, *, creating: bool) -> dict:
    errors = []
    cleaned = {}

    if creating or "projectId" in data:
        project_id = parse_positive_int(data.get("projectId"))
        if project_id is None:
            errors.append({"field": "projectId", "message": "projectId is required"})
        elif db.session.get(Project, project_id) is None:
            errors.append({"field": "projectId", "message": "Project does not exist"})
        else:
            cleaned["project_id"] = project_id

    if creating or "funder" in data:
        funder = data.get("funder")
        if not isinstance(funder, str) or not funder.strip():
            errors.append({"field": "funder", "message": "Funder is required"})
        else:
            cleaned["funder"] = funder.strip()[:200]

    if creating or "amount" in data:
        raw = data.get("amount")
        try:
            if isinstance(raw, bool) or raw is None:
                raise InvalidOperation
            amount = Decimal(str(raw))
        except InvalidOperation:
            errors.append({"field": "amount", "message": "Amount must be a number"})
        else:
            if not amount.is_finite() or amount <= 0:
                errors.append({"field": "amount", "message": "Amount must be greater than 0"})
            else:
                cleaned["amount"] = amount.quantize(Decimal("0.01"))

    if "currency" in data or creating:
        currency = data.get("currency") or DEFAULT_CURRENCY
        if not isinstance(currency, str) or not _CURRENCY_RE.match(currency):
            errors.append({"field": "currency", "message": "Currency must be a 3-letter code"})
        else:
            cleaned["currency"] = currency.upper()

    if "status" in data or creating:
        status = data.get("status") or "NEW"
        if status not in FINANCE_STATUSES:
            errors.append({"field": "status", "message": f"Must be one of {', '.join(FINANCE_STATUSES)}"})
        else:
            cleaned["status"] = status

    if creating or "year" in data:
        year = data.get("year")
        if isinstance(year, bool) or not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
            errors.append({"field": "year", "message": f"Year must be between {MIN_YEAR} and {MAX_YEAR}"})
        else:
            cleaned["year"] = year

    if "notes" in data:
        cleaned["notes"] = data.get("notes") or None

    if errors:
        raise ValidationError("Validation failed", details=errors)
    return cleaned


def _require_write_access(user, project_id) -> None:
    if user.role == ROLE_ADMIN:
        return
    if user.role == ROLE_MANAGER and can_access_project(user, project_id):
        return
    raise AuthorizationError("Insufficient permissions for this project")


# ── Writes ───────────────────────────────────────────────────────────────────

def create_finance(data: dict, actor) -> dict:
    cleaned = _clean(data, creating=True)
    _require_write_access(actor, cleaned["project_id"])

    finance = Finance(**cleaned)
    db.session.add(finance)
    db.session.flush()
    write_audit(
        entity_type="finance", entity_id=finance.id, action="create",
        actor_user_id=actor.id, project_id=finance.project_id,
        diff={"funder": finance.funder, "amount": str(finance.amount), "year": finance.year},
    )
    commit_or_rollback()
    logger.info("Finance record %d created for project %d", finance.id, finance.project_id)
    return finance.to_dict()


def update_finance(finance_id, data: dict, actor) -> dict:
    finance = db.session.get(Finance, finance_id)
    if finance is None:
        raise NotFoundError("Finance record", finance_id)
    _require_write_access(actor, finance.project_id)

    cleaned = _clean(data, creating=False)
    if "project_id" in cleaned and cleaned["project_id"] != finance.project_id:
        _require_write_access(actor, cleaned["project_id"])

    diff = {}
    for attr, value in cleaned.items():
        old = getattr(finance, attr)
        if old != value:
            diff[attr] = {"old": str(old) if old is not None else None, "new": str(value) if value is not None else None}
            setattr(finance, attr, value)
    write_audit(
        entity_type="finance", entity_id=finance.id, action="update",
        actor_user_id=actor.id, project_id=finance.project_id, diff=diff,
    )
    commit_or_rollback()
    return finance.to_dict()


def delete_finance(finance_id, actor) -> None:
    finance = db.session.get(Finance, finance_id)
    if finance is None:
        raise NotFoundError("Finance record", finance_id)
    write_audit(
        entity_type="finance", entity_id=finance.id, action="delete",
        actor_user_id=actor.id, project_id=finance.project_id,
        diff={"funder": finance.funder, "amount": str(finance.amount)},
    )
    db.session.delete(finance)
    commit_or_rollback()
    logger.info("Finance record %s deleted", finance_id)
