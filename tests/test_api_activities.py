"""
Activity API tests — create, read, update, delete and list.

  - create validates every field and the country → region → city chain
  - the aggregate round-trips N locations and M associations
  - update replaces collections in one transaction and is idempotent
  - edit/delete guards per role and status
  - list is scoped, filtered, sorted and paginated
"""

import pytest

from tracker.models import db
from tracker.models.activity import Activity, ActivityFunder, ActivityLocation
from tracker.models.auth import ROLE_MANAGER

from tests.conftest import auth_headers, make_user

URL = "/api/v1/activities"


def _fields(res):
    return {d["field"] for d in res.get_json().get("details", [])}


# ═════════════════════════════════════════════════════════════════════════════
# Create
# ═════════════════════════════════════════════════════════════════════════════

class TestCreate:
    def test_create_returns_hydrated_aggregate(self, create_activity, field_headers, field_user, catalog, project):
        body = create_activity(field_headers)
        assert body["id"]
        assert body["projectId"] == project.id
        assert body["project"]["name"] == "Media Integrity"
        assert body["createdById"] == field_user.id
        assert body["createdBy"]["email"] == "field@test.org"
        assert body["activityStartDate"] == "2024-03-10"
        assert body["activityEndDate"] == "2024-03-12"
        assert body["totalParticipants"] == 25
        assert body["activityTypes"] == [{"id": catalog["training"].id, "name": "Training and Workshops"}]
        assert body["funders"] == [{"id": catalog["giz"].id, "name": "GIZ"}]

        loc = body["locations"][0]
        assert loc["country"]["name"] == "Ghana"
        assert loc["region"]["name"] == "Greater Accra Region"
        assert loc["city"]["name"] == "Accra"

    def test_missing_demographics_default_to_zero(self, client, activity_payload, field_headers):
        payload = activity_payload()
        for key in ("maleCount", "femaleCount", "nonBinaryCount"):
            payload.pop(key)
        res = client.post(URL, json=payload, headers=field_headers)
        assert res.status_code == 201
        body = res.get_json()
        assert body["maleCount"] == 0
        assert body["totalParticipants"] == 0

    def test_round_trip_many_locations_and_funders(self, create_activity, field_headers, catalog):
        body = create_activity(
            field_headers,
            locations=[
                {
                    "countryId": catalog["ghana"].id,
                    "regionId": catalog["accra_region"].id,
                    "cityId": catalog["accra"].id,
                    "dateStart": "2024-03-10",
                    "dateEnd": "2024-03-12",
                },
                {"countryId": catalog["guinea"].id, "dateStart": "2024-02-01", "dateEnd": "2024-04-30"},
                {"countryId": catalog["ghana"].id, "dateStart": "15.01.2024"},
            ],
            funders=[catalog["giz"].id, catalog["world_bank"].id],
            thematicFocus=[catalog["media"].id, catalog["gender"].id],
        )
        assert len(body["locations"]) == 3
        assert {f["name"] for f in body["funders"]} == {"GIZ", "World Bank"}
        assert {t["name"] for t in body["thematicFocus"]} == {"Media Development", "Gender Equality"}
        assert body["activityStartDate"] == "2024-01-15"
        assert body["activityEndDate"] == "2024-04-30"

        fetched = db.session.get(Activity, body["id"])
        assert len(fetched.locations) == 3
        assert ActivityFunder.query.filter_by(activity_id=body["id"]).count() == 2

    def test_duplicate_ids_collapse(self, create_activity, field_headers, catalog):
        body = create_activity(field_headers, funders=[catalog["giz"].id, catalog["giz"].id])
        assert len(body["funders"]) == 1

    def test_created_as_submitted(self, create_activity, field_headers):
        assert create_activity(field_headers, status="SUBMITTED")["status"] == "SUBMITTED"

    @pytest.mark.parametrize("status", ["VALIDATED", "REJECTED", "bogus"])
    def test_other_initial_statuses_rejected(self, client, activity_payload, field_headers, status):
        res = client.post(URL, json=activity_payload(status=status), headers=field_headers)
        assert res.status_code == 400
        assert "status" in _fields(res)


class TestCreateValidation:
    def test_missing_title(self, client, activity_payload, field_headers):
        payload = activity_payload()
        payload.pop("activityTitle")
        res = client.post(URL, json=payload, headers=field_headers)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"
        assert "activityTitle" in _fields(res)

    def test_title_too_short(self, client, activity_payload, field_headers):
        res = client.post(URL, json=activity_payload(activityTitle="ab"), headers=field_headers)
        assert res.status_code == 400

    @pytest.mark.parametrize("key", ["locations", "activityTypes", "targetGroups", "thematicFocus", "funders"])
    def test_empty_collection_rejected(self, client, activity_payload, field_headers, key):
        res = client.post(URL, json=activity_payload(**{key: []}), headers=field_headers)
        assert res.status_code == 400
        assert key in _fields(res)

    def test_negative_count_rejected(self, client, activity_payload, field_headers):
        res = client.post(URL, json=activity_payload(femaleCount=-1), headers=field_headers)
        assert res.status_code == 400
        assert "femaleCount" in _fields(res)

    def test_count_beyond_column_range_rejected(self, client, activity_payload, field_headers):
        res = client.post(URL, json=activity_payload(maleCount=10**20), headers=field_headers)
        assert res.status_code == 400
        assert "maleCount" in _fields(res)
        assert Activity.query.count() == 0

    def test_end_before_start_rejected(self, client, activity_payload, catalog, field_headers):
        loc = {"countryId": catalog["ghana"].id, "dateStart": "2024-03-10", "dateEnd": "2024-03-01"}
        res = client.post(URL, json=activity_payload(locations=[loc]), headers=field_headers)
        assert res.status_code == 400
        assert "locations[0].dateEnd" in _fields(res)

    def test_bad_date_format_rejected(self, client, activity_payload, catalog, field_headers):
        loc = {"countryId": catalog["ghana"].id, "dateStart": "March 10th"}
        res = client.post(URL, json=activity_payload(locations=[loc]), headers=field_headers)
        assert res.status_code == 400
        assert "locations[0].dateStart" in _fields(res)

    def test_region_of_other_country_rejected(self, client, activity_payload, catalog, field_headers):
        loc = {
            "countryId": catalog["guinea"].id,
            "regionId": catalog["accra_region"].id,
            "dateStart": "2024-03-10",
        }
        res = client.post(URL, json=activity_payload(locations=[loc]), headers=field_headers)
        assert res.status_code == 400
        assert "locations[0].regionId" in _fields(res)
        assert Activity.query.count() == 0

    def test_city_without_region_rejected(self, client, activity_payload, catalog, field_headers):
        loc = {"countryId": catalog["ghana"].id, "cityId": catalog["accra"].id, "dateStart": "2024-03-10"}
        res = client.post(URL, json=activity_payload(locations=[loc]), headers=field_headers)
        assert res.status_code == 400
        assert "locations[0].regionId" in _fields(res)

    def test_wrong_category_rejected(self, client, activity_payload, catalog, field_headers):
        res = client.post(URL, json=activity_payload(activityTypes=[catalog["giz"].id]), headers=field_headers)
        assert res.status_code == 400
        assert "activityTypes" in _fields(res)

    def test_unknown_reference_rejected(self, client, activity_payload, field_headers):
        res = client.post(URL, json=activity_payload(funders=[99999]), headers=field_headers)
        assert res.status_code == 400
        assert "funders" in _fields(res)

    def test_body_must_be_object(self, client, field_headers):
        res = client.post(URL, json=[1, 2], headers=field_headers)
        assert res.status_code == 400

    def test_failed_create_leaves_no_rows(self, client, activity_payload, field_headers):
        client.post(URL, json=activity_payload(targetGroups=[99999]), headers=field_headers)
        assert Activity.query.count() == 0
        assert ActivityLocation.query.count() == 0


class TestCreateAccess:
    def test_field_user_outside_project_forbidden(self, client, activity_payload, other_project, field_headers):
        res = client.post(URL, json=activity_payload(projectId=other_project.id), headers=field_headers)
        assert res.status_code == 403

    def test_admin_any_project(self, client, activity_payload, other_project, admin_headers):
        res = client.post(URL, json=activity_payload(projectId=other_project.id), headers=admin_headers)
        assert res.status_code == 201

    def test_admin_unknown_project(self, client, activity_payload, admin_headers):
        res = client.post(URL, json=activity_payload(projectId=99999), headers=admin_headers)
        assert res.status_code == 400
        assert "projectId" in _fields(res)

    def test_unauthenticated(self, client, activity_payload):
        res = client.post(URL, json=activity_payload())
        assert res.status_code == 401


# ═════════════════════════════════════════════════════════════════════════════
# Read / Update / Delete
# ═════════════════════════════════════════════════════════════════════════════

class TestGet:
    def test_get_by_id(self, client, create_activity, field_headers, manager_headers):
        created = create_activity(field_headers)
        res = client.get(f"{URL}/{created['id']}", headers=manager_headers)
        assert res.status_code == 200
        assert res.get_json() == created

    def test_get_unknown(self, client, field_headers):
        res = client.get(f"{URL}/does-not-exist", headers=field_headers)
        assert res.status_code == 404
        assert res.get_json()["error"] == "Activity not found"


class TestUpdate:
    def test_update_is_idempotent(self, client, create_activity, activity_payload, field_headers):
        created = create_activity(field_headers)
        payload = activity_payload(activityTitle="Renamed workshop")
        first = client.put(f"{URL}/{created['id']}", json=payload, headers=field_headers)
        second = client.put(f"{URL}/{created['id']}", json=payload, headers=field_headers)
        assert first.status_code == second.status_code == 200

        a, b = first.get_json(), second.get_json()
        for key in ("activityTitle", "activityTypes", "targetGroups", "thematicFocus", "funders"):
            assert a[key] == b[key]
        assert [loc["cityId"] for loc in b["locations"]] == [loc["cityId"] for loc in a["locations"]]
        assert ActivityLocation.query.filter_by(activity_id=created["id"]).count() == 1
        assert ActivityFunder.query.filter_by(activity_id=created["id"]).count() == 1

    def test_scalar_patch_keeps_collections(self, client, create_activity, field_headers):
        created = create_activity(field_headers)
        res = client.put(
            f"{URL}/{created['id']}", json={"keyOutputs": "Trained 25 journalists"}, headers=field_headers,
        )
        assert res.status_code == 200
        body = res.get_json()
        assert body["keyOutputs"] == "Trained 25 journalists"
        assert body["activityTitle"] == created["activityTitle"]
        assert body["funders"] == created["funders"]
        assert len(body["locations"]) == 1

    def test_collection_replaced(self, client, create_activity, catalog, field_headers):
        created = create_activity(field_headers)
        res = client.put(
            f"{URL}/{created['id']}",
            json={
                "funders": [catalog["world_bank"].id],
                "locations": [{"countryId": catalog["guinea"].id, "dateStart": "2024-05-01"}],
            },
            headers=field_headers,
        )
        assert res.status_code == 200
        body = res.get_json()
        assert [f["name"] for f in body["funders"]] == ["World Bank"]
        assert body["locations"][0]["country"]["name"] == "Guinea"
        assert body["activityStartDate"] == "2024-05-01"
        assert body["activityEndDate"] is None

    def test_empty_collection_rejected_and_unchanged(self, client, create_activity, field_headers):
        created = create_activity(field_headers)
        res = client.put(f"{URL}/{created['id']}", json={"funders": []}, headers=field_headers)
        assert res.status_code == 400
        assert ActivityFunder.query.filter_by(activity_id=created["id"]).count() == 1

    def test_invalid_update_rolls_back(self, client, create_activity, field_headers):
        created = create_activity(field_headers)
        res = client.put(
            f"{URL}/{created['id']}",
            json={"activityTitle": "Should not stick", "maleCount": -5},
            headers=field_headers,
        )
        assert res.status_code == 400
        assert db.session.get(Activity, created["id"]).activity_title == created["activityTitle"]

    def test_field_user_cannot_edit_others(self, client, create_activity, field_headers, other_field_headers):
        created = create_activity(field_headers)
        res = client.put(f"{URL}/{created['id']}", json={"activityTitle": "Hijacked"}, headers=other_field_headers)
        assert res.status_code == 403

    def test_member_manager_can_edit(self, client, create_activity, field_headers, manager_headers):
        created = create_activity(field_headers)
        res = client.put(f"{URL}/{created['id']}", json={"activityTitle": "Manager edit"}, headers=manager_headers)
        assert res.status_code == 200

    def test_non_member_manager_cannot_edit(self, client, create_activity, field_headers):
        created = create_activity(field_headers)
        outsider = auth_headers(make_user("outsider@test.org", ROLE_MANAGER))
        res = client.put(f"{URL}/{created['id']}", json={"activityTitle": "Nope"}, headers=outsider)
        assert res.status_code == 403

    def test_validated_frozen_except_for_admin(
        self, client, create_activity, field_headers, manager_headers, admin_headers,
    ):
        created = create_activity(field_headers, status="SUBMITTED")
        client.post(f"{URL}/{created['id']}/validate", json={"status": "VALIDATED"}, headers=manager_headers)

        for headers in (field_headers, manager_headers):
            res = client.put(f"{URL}/{created['id']}", json={"activityTitle": "Late edit"}, headers=headers)
            assert res.status_code == 403

        res = client.put(f"{URL}/{created['id']}", json={"activityTitle": "Admin fix"}, headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["status"] == "VALIDATED"

    def test_move_requires_target_project_access(self, client, create_activity, other_project, field_headers):
        created = create_activity(field_headers)
        res = client.put(f"{URL}/{created['id']}", json={"projectId": other_project.id}, headers=field_headers)
        assert res.status_code == 403
        assert db.session.get(Activity, created["id"]).project_id == created["projectId"]

    def test_admin_moves_activity(self, client, create_activity, other_project, field_headers, admin_headers):
        created = create_activity(field_headers)
        res = client.put(f"{URL}/{created['id']}", json={"projectId": other_project.id}, headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json()["project"]["name"] == "Governance"

    def test_update_unknown(self, client, admin_headers):
        res = client.put(f"{URL}/missing", json={"activityTitle": "Whatever"}, headers=admin_headers)
        assert res.status_code == 404


class TestDelete:
    def test_only_admin_deletes(self, client, create_activity, field_headers, manager_headers):
        created = create_activity(field_headers)
        for headers in (field_headers, manager_headers):
            assert client.delete(f"{URL}/{created['id']}", headers=headers).status_code == 403
        assert db.session.get(Activity, created["id"]) is not None

    def test_admin_delete_removes_children(self, client, create_activity, field_headers, admin_headers):
        created = create_activity(field_headers)
        res = client.delete(f"{URL}/{created['id']}", headers=admin_headers)
        assert res.status_code == 200
        assert res.get_json() == {"success": True}
        assert client.get(f"{URL}/{created['id']}", headers=admin_headers).status_code == 404
        assert ActivityLocation.query.count() == 0
        assert ActivityFunder.query.count() == 0

    def test_delete_unknown(self, client, admin_headers):
        assert client.delete(f"{URL}/missing", headers=admin_headers).status_code == 404


# ═════════════════════════════════════════════════════════════════════════════
# List
# ═════════════════════════════════════════════════════════════════════════════

class TestList:
    def test_field_user_sees_own_only(self, client, create_activity, field_headers, other_field_headers):
        mine = create_activity(field_headers)
        create_activity(other_field_headers)
        res = client.get(URL, headers=field_headers)
        assert res.status_code == 200
        body = res.get_json()
        assert [a["id"] for a in body["data"]] == [mine["id"]]
        assert body["pagination"]["total"] == 1

    def test_admin_sees_everything(self, client, create_activity, field_headers, other_field_headers, admin_headers):
        create_activity(field_headers)
        create_activity(other_field_headers)
        assert client.get(URL, headers=admin_headers).get_json()["pagination"]["total"] == 2

    def test_pagination(self, client, create_activity, field_headers):
        for i in range(5):
            create_activity(field_headers, activityTitle=f"Workshop {i}")
        res = client.get(f"{URL}?page=2&limit=2", headers=field_headers)
        body = res.get_json()
        assert len(body["data"]) == 2
        assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "totalPages": 3}

    def test_sort_by_title(self, client, create_activity, field_headers):
        for title in ("Charlie", "Alpha", "Bravo"):
            create_activity(field_headers, activityTitle=title)
        res = client.get(f"{URL}?sortBy=activityTitle&sortOrder=asc", headers=field_headers)
        assert [a["activityTitle"] for a in res.get_json()["data"]] == ["Alpha", "Bravo", "Charlie"]

    def test_status_and_search_filters(self, client, create_activity, field_headers):
        create_activity(field_headers, activityTitle="Radio training")
        submitted = create_activity(field_headers, activityTitle="Radio debate", status="SUBMITTED")
        create_activity(field_headers, activityTitle="Budget review", status="SUBMITTED")
        res = client.get(f"{URL}?status=SUBMITTED&search=radio", headers=field_headers)
        assert [a["id"] for a in res.get_json()["data"]] == [submitted["id"]]

    def test_country_and_funder_filters(self, client, create_activity, catalog, field_headers):
        in_ghana = create_activity(field_headers)
        create_activity(
            field_headers,
            locations=[{"countryId": catalog["guinea"].id, "dateStart": "2024-03-10"}],
            funders=[catalog["world_bank"].id],
        )
        res = client.get(f"{URL}?country={catalog['ghana'].id}", headers=field_headers)
        assert [a["id"] for a in res.get_json()["data"]] == [in_ghana["id"]]
        res = client.get(f"{URL}?funder={catalog['giz'].id}", headers=field_headers)
        assert [a["id"] for a in res.get_json()["data"]] == [in_ghana["id"]]

    def test_date_range_filter(self, client, create_activity, catalog, field_headers):
        create_activity(field_headers)
        later = create_activity(
            field_headers, locations=[{"countryId": catalog["ghana"].id, "dateStart": "2024-09-01"}],
        )
        res = client.get(f"{URL}?dateFrom=2024-06-01&dateTo=2024-12-31", headers=field_headers)
        assert [a["id"] for a in res.get_json()["data"]] == [later["id"]]

    @pytest.mark.parametrize("query", [
        "limit=0", "limit=101", "page=0", "page=x", "status=DONE",
        "sortBy=nope", "sortOrder=up", "dateFrom=2024-13-01", "dateFrom=2024-05-01&dateTo=2024-01-01",
        "country=abc", "page=99999999999999999999", "projectId=99999999999999999999",
        "country=99999999999999999999",
    ])
    def test_invalid_filters(self, client, field_headers, query):
        res = client.get(f"{URL}?{query}", headers=field_headers)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"
