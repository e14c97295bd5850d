"""
Activity lifecycle tests — the DRAFT → SUBMITTED → VALIDATED | REJECTED
state machine through the API.

  - happy paths: submit, validate, reject, resubmit after rejection
  - invalid transitions are 400 and leave the status untouched
  - role and ownership guards are 403; unknown ids are 404
  - every transition leaves an audit row
"""

import pytest

from tracker.models import db
from tracker.models.activity import ACTIVITY_STATUSES, Activity
from tracker.models.audit import AuditLog
from tracker.models.auth import ROLE_MANAGER
from tracker.services.activity_lifecycle import validate_transition

from tests.conftest import auth_headers, make_user


def _submit(client, activity_id, headers):
    return client.post(f"/api/v1/activities/{activity_id}/submit", json={}, headers=headers)


def _review(client, activity_id, headers, status, reason=None):
    body = {"status": status}
    if reason is not None:
        body["rejectionReason"] = reason
    return client.post(f"/api/v1/activities/{activity_id}/validate", json=body, headers=headers)


def _status(activity_id):
    return db.session.get(Activity, activity_id).status


@pytest.fixture()
def draft(create_activity, field_headers):
    return create_activity(field_headers)


@pytest.fixture()
def submitted(create_activity, field_headers):
    return create_activity(field_headers, status="SUBMITTED")


class TestHappyPath:
    def test_created_as_draft_by_default(self, draft):
        assert draft["status"] == "DRAFT"
        assert draft["rejectionReason"] is None

    def test_created_as_submitted_when_requested(self, submitted):
        assert submitted["status"] == "SUBMITTED"

    def test_submit_draft(self, client, draft, field_headers):
        res = _submit(client, draft["id"], field_headers)
        assert res.status_code == 200
        assert res.get_json()["status"] == "SUBMITTED"

    def test_validate_sets_validator(self, client, submitted, manager, manager_headers):
        res = _review(client, submitted["id"], manager_headers, "VALIDATED")
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "VALIDATED"
        assert body["validatedById"] == manager.id
        assert body["rejectionReason"] is None

    def test_reject_stores_trimmed_reason(self, client, submitted, manager_headers):
        res = _review(client, submitted["id"], manager_headers, "REJECTED", "  Missing evidence  ")
        assert res.status_code == 200
        assert res.get_json()["status"] == "REJECTED"
        assert res.get_json()["rejectionReason"] == "Missing evidence"

    def test_resubmit_after_rejection_clears_reason(self, client, submitted, field_headers, manager_headers):
        _review(client, submitted["id"], manager_headers, "REJECTED", "Add photos")
        res = _submit(client, submitted["id"], field_headers)
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "SUBMITTED"
        assert body["rejectionReason"] is None
        assert body["validatedById"] is None

    def test_admin_can_review(self, client, submitted, admin_headers):
        res = _review(client, submitted["id"], admin_headers, "VALIDATED")
        assert res.status_code == 200


class TestInvalidTransitions:
    def test_submitting_twice_fails(self, client, draft, field_headers):
        assert _submit(client, draft["id"], field_headers).status_code == 200
        res = _submit(client, draft["id"], field_headers)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_CONFLICT_STATE"
        assert _status(draft["id"]) == "SUBMITTED"

    def test_validating_draft_fails(self, client, draft, manager_headers):
        res = _review(client, draft["id"], manager_headers, "VALIDATED")
        assert res.status_code == 400
        assert _status(draft["id"]) == "DRAFT"

    def test_validated_cannot_be_resubmitted(self, client, submitted, field_headers, manager_headers):
        _review(client, submitted["id"], manager_headers, "VALIDATED")
        res = _submit(client, submitted["id"], field_headers)
        assert res.status_code == 400
        assert _status(submitted["id"]) == "VALIDATED"

    def test_reject_without_reason_keeps_submitted(self, client, submitted, manager_headers):
        res = _review(client, submitted["id"], manager_headers, "REJECTED")
        assert res.status_code == 400
        assert _status(submitted["id"]) == "SUBMITTED"

    def test_reject_with_blank_reason_keeps_submitted(self, client, submitted, manager_headers):
        res = _review(client, submitted["id"], manager_headers, "REJECTED", "   ")
        assert res.status_code == 400
        assert _status(submitted["id"]) == "SUBMITTED"

    def test_unknown_review_status(self, client, submitted, manager_headers):
        res = _review(client, submitted["id"], manager_headers, "APPROVED")
        assert res.status_code == 400
        assert _status(submitted["id"]) == "SUBMITTED"

    def test_non_text_rejection_reason(self, client, submitted, manager_headers):
        res = _review(client, submitted["id"], manager_headers, "REJECTED", 123)
        assert res.status_code == 400
        assert res.get_json()["details"][0]["field"] == "rejectionReason"
        assert _status(submitted["id"]) == "SUBMITTED"

    @pytest.mark.parametrize("status", [["VALIDATED"], {"value": "VALIDATED"}, 1])
    def test_non_text_review_status(self, client, submitted, manager_headers, status):
        res = _review(client, submitted["id"], manager_headers, status)
        assert res.status_code == 400
        assert res.get_json()["details"][0]["field"] == "status"
        assert _status(submitted["id"]) == "SUBMITTED"

    def test_validate_transition_helper(self, draft):
        activity = db.session.get(Activity, draft["id"])
        assert validate_transition(activity, "submit")["valid"] is True
        check = validate_transition(activity, "validate")
        assert check["valid"] is False
        assert check["from"] == "DRAFT"


class TestGuards:
    def test_field_user_cannot_review(self, client, submitted, field_headers):
        res = _review(client, submitted["id"], field_headers, "VALIDATED")
        assert res.status_code == 403
        assert _status(submitted["id"]) == "SUBMITTED"

    def test_review_role_checked_before_existence(self, client, field_headers):
        res = _review(client, "missing-id", field_headers, "VALIDATED")
        assert res.status_code == 403

    def test_unknown_activity_is_404(self, client, manager_headers):
        assert _review(client, "missing-id", manager_headers, "VALIDATED").status_code == 404
        assert _submit(client, "missing-id", manager_headers).status_code == 404

    def test_other_field_user_cannot_submit(self, client, draft, other_field_headers):
        res = _submit(client, draft["id"], other_field_headers)
        assert res.status_code == 403
        assert _status(draft["id"]) == "DRAFT"

    def test_member_manager_can_submit(self, client, draft, manager_headers):
        assert _submit(client, draft["id"], manager_headers).status_code == 200

    def test_non_member_manager_cannot_submit(self, client, draft):
        outsider = make_user("outsider@test.org", ROLE_MANAGER)
        res = _submit(client, draft["id"], auth_headers(outsider))
        assert res.status_code == 403


class TestInvariants:
    def test_status_always_known_and_reason_only_when_rejected(
        self, client, create_activity, field_headers, manager_headers,
    ):
        a = create_activity(field_headers, status="SUBMITTED")
        b = create_activity(field_headers, status="SUBMITTED")
        create_activity(field_headers)
        _review(client, a["id"], manager_headers, "REJECTED", "Incomplete")
        _review(client, b["id"], manager_headers, "VALIDATED")

        for activity in Activity.query.all():
            assert activity.status in ACTIVITY_STATUSES
            if activity.status == "REJECTED":
                assert activity.rejection_reason
            else:
                assert activity.rejection_reason is None

    def test_transitions_are_audited(self, client, submitted, field_headers, manager_headers, manager):
        _review(client, submitted["id"], manager_headers, "REJECTED", "Add photos")
        _submit(client, submitted["id"], field_headers)
        _review(client, submitted["id"], manager_headers, "VALIDATED")

        actions = [
            row.action
            for row in AuditLog.query.filter_by(entity_id=submitted["id"]).order_by(AuditLog.id).all()
        ]
        assert actions == ["create", "activity.reject", "activity.submit", "activity.validate"]
        last = AuditLog.query.filter_by(action="activity.validate").one()
        assert last.actor_user_id == manager.id
        assert last.diff["status"] == {"old": "SUBMITTED", "new": "VALIDATED"}
