"""
Shared pytest fixtures for the Activity Tracker test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - users of each role, bearer headers, a project and a reference catalog
    - activity_payload: factory for a valid create-activity body
"""

import functools

import pytest

from tracker import create_app
from tracker.models import db as _db
from tracker.models.auth import (
    ROLE_ADMIN,
    ROLE_FIELD,
    ROLE_MANAGER,
    STATUS_ACTIVE,
    ProjectMember,
    User,
)
from tracker.models.project import Project
from tracker.models.reference import ReferenceCategory, ReferenceItem
from tracker.services.jwt_service import generate_access_token
from tracker.utils.crypto import hash_password

PASSWORD = "Secret123!"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Users ────────────────────────────────────────────────────────────────


@functools.lru_cache(maxsize=None)
def _hashed(password):
    # one bcrypt hash per distinct password per session
    return hash_password(password)


def make_user(email, role, *, name=None, status=STATUS_ACTIVE, password=PASSWORD):
    user = User(
        email=email,
        name=name or email.split("@")[0].title(),
        role=role,
        status=status,
        password_hash=_hashed(password) if password else None,
    )
    _db.session.add(user)
    _db.session.commit()
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {generate_access_token(user)}"}


def add_member(project, user):
    _db.session.add(ProjectMember(project_id=project.id, user_id=user.id))
    _db.session.commit()


@pytest.fixture()
def admin():
    return make_user("admin@test.org", ROLE_ADMIN, name="Ada Admin")


@pytest.fixture()
def manager():
    return make_user("manager@test.org", ROLE_MANAGER, name="Max Manager")


@pytest.fixture()
def field_user():
    return make_user("field@test.org", ROLE_FIELD, name="Fay Field")


@pytest.fixture()
def other_field_user():
    return make_user("field2@test.org", ROLE_FIELD, name="Finn Field")


@pytest.fixture()
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture()
def manager_headers(manager):
    return auth_headers(manager)


@pytest.fixture()
def field_headers(field_user):
    return auth_headers(field_user)


@pytest.fixture()
def other_field_headers(other_field_user):
    return auth_headers(other_field_user)


# ── Project & catalog ────────────────────────────────────────────────────


@pytest.fixture()
def project(manager, field_user, other_field_user):
    """A project with the manager and both field users as members."""
    p = Project(name="Media Integrity", slug="media-integrity")
    _db.session.add(p)
    _db.session.commit()
    for user in (manager, field_user, other_field_user):
        add_member(p, user)
    return p


@pytest.fixture()
def other_project():
    """A project nobody in the default fixtures belongs to."""
    p = Project(name="Governance", slug="governance")
    _db.session.add(p)
    _db.session.commit()
    return p


def make_item(category, name, parent=None):
    item = ReferenceItem(category=category, name=name, parent_id=parent.id if parent else None)
    _db.session.add(item)
    _db.session.commit()
    return item


@pytest.fixture()
def catalog():
    """Two countries with a region/city chain in Ghana plus one of each flat category."""
    ghana = make_item(ReferenceCategory.COUNTRY, "Ghana")
    guinea = make_item(ReferenceCategory.COUNTRY, "Guinea")
    accra_region = make_item(ReferenceCategory.REGION, "Greater Accra Region", ghana)
    accra = make_item(ReferenceCategory.CITY, "Accra", accra_region)
    return {
        "ghana": ghana,
        "guinea": guinea,
        "accra_region": accra_region,
        "accra": accra,
        "training": make_item(ReferenceCategory.ACTIVITY_TYPE, "Training and Workshops"),
        "research": make_item(ReferenceCategory.ACTIVITY_TYPE, "Research Studies and Surveys"),
        "journalists": make_item(ReferenceCategory.TARGET_GROUP, "Journalists"),
        "media": make_item(ReferenceCategory.THEMATIC_FOCUS, "Media Development"),
        "gender": make_item(ReferenceCategory.THEMATIC_FOCUS, "Gender Equality"),
        "giz": make_item(ReferenceCategory.FUNDER, "GIZ"),
        "world_bank": make_item(ReferenceCategory.FUNDER, "World Bank"),
    }


@pytest.fixture()
def activity_payload(project, catalog):
    """Factory for a valid create body; keyword overrides replace keys."""

    def _build(**overrides):
        body = {
            "projectId": project.id,
            "activityTitle": "Fact-checking workshop",
            "locations": [{
                "countryId": catalog["ghana"].id,
                "regionId": catalog["accra_region"].id,
                "cityId": catalog["accra"].id,
                "dateStart": "2024-03-10",
                "dateEnd": "2024-03-12",
            }],
            "activityTypes": [catalog["training"].id],
            "targetGroups": [catalog["journalists"].id],
            "thematicFocus": [catalog["media"].id],
            "funders": [catalog["giz"].id],
            "maleCount": 10,
            "femaleCount": 15,
            "nonBinaryCount": 0,
        }
        body.update(overrides)
        return body

    return _build


@pytest.fixture()
def create_activity(client, activity_payload):
    """POST an activity as ``headers`` and return the response JSON."""

    def _create(headers, **overrides):
        res = client.post("/api/v1/activities", json=activity_payload(**overrides), headers=headers)
        assert res.status_code == 201, res.get_json()
        return res.get_json()

    return _create
