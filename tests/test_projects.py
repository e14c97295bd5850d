"""
Project API tests — CRUD, membership, visibility.
"""

import pytest

from tracker.models import db
from tracker.models.auth import ROLE_MANAGER, ProjectMember
from tracker.models.finance import Finance
from tracker.models.project import Project

from tests.conftest import auth_headers, make_user

URL = "/api/v1/projects"


class TestList:
    def test_admin_sees_all(self, client, project, other_project, admin_headers):
        res = client.get(URL, headers=admin_headers)
        assert res.status_code == 200
        assert [p["slug"] for p in res.get_json()] == ["governance", "media-integrity"]

    def test_member_sees_own(self, client, project, other_project, field_headers):
        res = client.get(URL, headers=field_headers)
        body = res.get_json()
        assert [p["slug"] for p in body] == ["media-integrity"]
        assert body[0]["counts"] == {"activities": 0, "users": 3, "finances": 0}

    def test_no_memberships_sees_nothing(self, client, project):
        lonely = auth_headers(make_user("lonely@test.org", ROLE_MANAGER))
        assert client.get(URL, headers=lonely).get_json() == []


class TestDetail:
    def test_member_detail_includes_users(self, client, project, manager_headers):
        res = client.get(f"{URL}/{project.id}", headers=manager_headers)
        assert res.status_code == 200
        emails = {u["user"]["email"] for u in res.get_json()["users"]}
        assert emails == {"manager@test.org", "field@test.org", "field2@test.org"}

    def test_non_member_forbidden(self, client, other_project, manager_headers):
        assert client.get(f"{URL}/{other_project.id}", headers=manager_headers).status_code == 403

    def test_unknown(self, client, admin_headers):
        res = client.get(f"{URL}/9999", headers=admin_headers)
        assert res.status_code == 404
        assert res.get_json()["error"] == "Project not found"


class TestCreateUpdate:
    def test_create_derives_slug(self, client, admin_headers):
        res = client.post(URL, json={"name": "Youth Voices 2025"}, headers=admin_headers)
        assert res.status_code == 201
        body = res.get_json()
        assert body["slug"] == "youth-voices-2025"
        assert body["isActive"] is True
        assert body["counts"]["activities"] == 0

    def test_create_explicit_slug(self, client, admin_headers):
        res = client.post(URL, json={"name": "Elections", "slug": "elections-24"}, headers=admin_headers)
        assert res.get_json()["slug"] == "elections-24"

    @pytest.mark.parametrize("slug", ["Has Space", "under_score", "-leading", "double--dash"])
    def test_invalid_slug(self, client, admin_headers, slug):
        res = client.post(URL, json={"name": "Elections", "slug": slug}, headers=admin_headers)
        assert res.status_code == 400

    def test_missing_name(self, client, admin_headers):
        assert client.post(URL, json={"slug": "x"}, headers=admin_headers).status_code == 400

    def test_duplicate_slug(self, client, project, admin_headers):
        res = client.post(URL, json={"name": "Media Integrity"}, headers=admin_headers)
        assert res.status_code == 409

    def test_non_admin_cannot_create(self, client, manager_headers):
        assert client.post(URL, json={"name": "Nope"}, headers=manager_headers).status_code == 403

    def test_update(self, client, project, admin_headers):
        res = client.put(
            f"{URL}/{project.id}",
            json={"description": "Countering disinformation", "isActive": False},
            headers=admin_headers,
        )
        assert res.status_code == 200
        body = res.get_json()
        assert body["description"] == "Countering disinformation"
        assert body["isActive"] is False
        assert body["slug"] == "media-integrity"

    def test_update_to_taken_slug(self, client, project, other_project, admin_headers):
        res = client.put(f"{URL}/{project.id}", json={"slug": "governance"}, headers=admin_headers)
        assert res.status_code == 409

    def test_update_is_active_must_be_bool(self, client, project, admin_headers):
        res = client.put(f"{URL}/{project.id}", json={"isActive": "no"}, headers=admin_headers)
        assert res.status_code == 400


class TestDelete:
    def test_delete_blocked_by_activities(self, client, project, create_activity, field_headers, admin_headers):
        create_activity(field_headers)
        res = client.delete(f"{URL}/{project.id}", headers=admin_headers)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_CONFLICT_DEPENDENCY"
        assert res.get_json()["details"] == [{"field": "activities", "message": "1"}]

    def test_delete_removes_memberships_and_finances(self, client, project, admin_headers):
        db.session.add(Finance(project_id=project.id, funder="GIZ", amount=1000, year=2024))
        db.session.commit()
        res = client.delete(f"{URL}/{project.id}", headers=admin_headers)
        assert res.status_code == 200
        assert db.session.get(Project, project.id) is None
        assert ProjectMember.query.count() == 0
        assert Finance.query.count() == 0


class TestMembership:
    def test_add_member(self, client, other_project, manager, admin_headers, manager_headers):
        res = client.post(f"{URL}/{other_project.id}/users", json={"userId": manager.id}, headers=admin_headers)
        assert res.status_code == 201
        assert res.get_json()["userId"] == manager.id
        assert client.get(f"{URL}/{other_project.id}", headers=manager_headers).status_code == 200

    def test_add_existing_member_conflicts(self, client, project, manager, admin_headers):
        res = client.post(f"{URL}/{project.id}/users", json={"userId": manager.id}, headers=admin_headers)
        assert res.status_code == 409

    def test_add_unknown_user(self, client, project, admin_headers):
        res = client.post(f"{URL}/{project.id}/users", json={"userId": 9999}, headers=admin_headers)
        assert res.status_code == 404

    def test_add_requires_user_id(self, client, project, admin_headers):
        assert client.post(f"{URL}/{project.id}/users", json={}, headers=admin_headers).status_code == 400

    def test_remove_member_narrows_scope(self, client, project, manager, admin_headers, manager_headers):
        res = client.delete(f"{URL}/{project.id}/users/{manager.id}", headers=admin_headers)
        assert res.status_code == 200
        assert client.get(f"{URL}/{project.id}", headers=manager_headers).status_code == 403

    def test_remove_non_member(self, client, other_project, manager, admin_headers):
        res = client.delete(f"{URL}/{other_project.id}/users/{manager.id}", headers=admin_headers)
        assert res.status_code == 404

    def test_non_admin_cannot_manage_members(self, client, project, admin, manager_headers):
        res = client.post(f"{URL}/{project.id}/users", json={"userId": admin.id}, headers=manager_headers)
        assert res.status_code == 403
