#!/usr/bin/env python3
"""
Activity Tracker — Demo Data Seed Script.

Programme: West Africa media & governance portfolio.

Usage:
    python scripts/seed_demo_data.py
    python scripts/seed_demo_data.py --append
    python scripts/seed_demo_data.py --verbose
"""

import argparse
import random
import sys
from datetime import date, timedelta
from decimal import Decimal

sys.path.insert(0, ".")

from tracker import create_app
from tracker.models import db
from tracker.models.activity import (
    ASSOCIATIONS,
    STATUS_SUBMITTED,
    STATUS_VALIDATED,
    Activity,
    ActivityLocation,
)
from tracker.models.audit import AuditLog
from tracker.models.auth import STATUS_ACTIVE, ProjectMember, User
from tracker.models.finance import Finance
from tracker.models.project import Project
from tracker.models.reference import ReferenceCategory, ReferenceItem
from tracker.utils.crypto import hash_password

from scripts.seed_data.catalog import (
    ACTIVITY_TYPES, COUNTRIES, FUNDERS, GHANA_CITIES, GHANA_REGIONS,
    PROGRAMME_AREAS, TARGET_GROUPS, THEMATIC_FOCUS,
)
from scripts.seed_data.programme import ACTIVITIES, FINANCES, NARRATIVE, PROJECTS, USERS

_ASSOCIATION_KEYS = {
    "activityTypes": "activity_types",
    "targetGroups": "target_groups",
    "thematicFocus": "thematic_focus",
    "funders": "funders",
}


def _p(msg, verbose):
    if verbose:
        print(msg)


def _clear():
    print("🗑️  Clearing existing data...")
    for model in (AuditLog, *[a.model for a in ASSOCIATIONS], ActivityLocation, Activity,
                  Finance, ProjectMember, Project, User):
        db.session.query(model).delete()
    # children before parents: city → region → country
    for category in (ReferenceCategory.CITY, ReferenceCategory.REGION):
        ReferenceItem.query.filter_by(category=category).delete()
    ReferenceItem.query.delete()
    db.session.commit()
    print("   Done.\n")


def _seed_catalog(verbose):
    print("📚 Creating reference data...")
    items = {}

    def add(category, name, description=None, parent=None):
        item = ReferenceItem(category=category, name=name, description=description,
                             parent_id=parent.id if parent else None)
        db.session.add(item)
        db.session.flush()
        items[(category, name)] = item
        _p(f"   + {category.value}: {name}", verbose)
        return item

    for name, description in PROGRAMME_AREAS:
        add(ReferenceCategory.PROGRAMME_AREA, name, description)
    for name in ACTIVITY_TYPES:
        add(ReferenceCategory.ACTIVITY_TYPE, name)
    for name in THEMATIC_FOCUS:
        add(ReferenceCategory.THEMATIC_FOCUS, name)
    for name in TARGET_GROUPS:
        add(ReferenceCategory.TARGET_GROUP, name)
    for name in FUNDERS:
        add(ReferenceCategory.FUNDER, name)
    for name in COUNTRIES:
        add(ReferenceCategory.COUNTRY, name)
    ghana = items[(ReferenceCategory.COUNTRY, "Ghana")]
    for name in GHANA_REGIONS:
        add(ReferenceCategory.REGION, name, parent=ghana)
    for name, region in GHANA_CITIES.items():
        add(ReferenceCategory.CITY, name, parent=items[(ReferenceCategory.REGION, region)])

    print(f"   ✅ {len(items)} reference items")
    return items


def _seed_people(verbose):
    print("\n👥 Creating users & projects...")
    users = {}
    for u in USERS:
        user = User(email=u["email"], name=u["name"], role=u["role"], status=STATUS_ACTIVE,
                    password_hash=hash_password(u["password"]))
        db.session.add(user)
        users[u["email"]] = user
        print(f"   ✅ User '{u['email']}' (role={u['role']}, pw={u['password']})")
    db.session.flush()

    projects = {}
    for p in PROJECTS:
        project = Project(name=p["name"], slug=p["slug"], description=p["description"], is_active=True)
        db.session.add(project)
        db.session.flush()
        for email in p["members"]:
            db.session.add(ProjectMember(project_id=project.id, user_id=users[email].id))
        projects[p["slug"]] = project
        _p(f"   📋 Project: {project.name} ({len(p['members'])} members)", verbose)
    print(f"   ✅ {len(projects)} projects")
    return users, projects


def _seed_activities(items, users, projects, verbose):
    print("\n🎯 Creating activities...")
    rng = random.Random(2024)
    admin = users["admin@tracker.com"]
    for index, data in enumerate(ACTIVITIES):
        validated = index % 3 == 0
        start = date(2024, rng.randint(1, 12), rng.randint(1, 28))
        end = start + timedelta(days=rng.randint(0, 5))
        activity = Activity(
            project_id=projects[data["project"]].id,
            created_by_id=users[data["creator"]].id,
            validated_by_id=admin.id if validated else None,
            status=STATUS_VALIDATED if validated else STATUS_SUBMITTED,
            activity_title=data["title"],
            activity_start_date=start,
            activity_end_date=end,
            male_count=rng.randint(10, 50),
            female_count=rng.randint(10, 50),
            non_binary_count=rng.randint(0, 4),
            age_under_25=rng.randint(5, 35),
            age_25_to_40=rng.randint(10, 50),
            age_40_plus=rng.randint(5, 35),
            disability_yes=rng.randint(0, 9),
            disability_no=rng.randint(10, 60),
            **NARRATIVE,
        )
        for country, region, city in data["locations"]:
            activity.locations.append(ActivityLocation(
                country_id=items[(ReferenceCategory.COUNTRY, country)].id,
                region_id=items[(ReferenceCategory.REGION, region)].id if region else None,
                city_id=items[(ReferenceCategory.CITY, city)].id if city else None,
                date_start=start,
                date_end=end,
            ))
        for assoc in ASSOCIATIONS:
            links = getattr(activity, assoc.attr)
            for name in data[_ASSOCIATION_KEYS[assoc.key]]:
                links.append(assoc.model(reference_id=items[(assoc.category, name)].id))
        db.session.add(activity)
        _p(f"   🎯 {activity.activity_title} ({activity.status})", verbose)
    print(f"   ✅ {len(ACTIVITIES)} activities")


def _seed_finances(projects, verbose):
    print("\n💰 Creating finance records...")
    for f in FINANCES:
        db.session.add(Finance(
            project_id=projects[f["project"]].id,
            funder=f["funder"],
            amount=Decimal(f["amount"]),
            currency=f["currency"],
            year=f["year"],
            status=f["status"],
            notes=f["notes"],
        ))
        _p(f"   💰 {f['funder']}: {f['amount']} {f['currency']}", verbose)
    print(f"   ✅ {len(FINANCES)} finance records")


def seed_all(app, append=False, verbose=False):
    with app.app_context():
        if not append:
            _clear()
        elif User.query.filter_by(email=USERS[0]["email"]).first() is not None:
            print("⏩ Demo data already present; nothing to append.")
            return

        items = _seed_catalog(verbose)
        users, projects = _seed_people(verbose)
        _seed_activities(items, users, projects, verbose)
        _seed_finances(projects, verbose)
        db.session.commit()

        print(f"\n{'='*60}")
        print("🎉 DEMO DATA SEED COMPLETE")
        print(f"{'='*60}\n")


def main():
    parser = argparse.ArgumentParser(description="Seed demo data")
    parser.add_argument("--append", action="store_true")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    app = create_app()
    print(f"🎯 DB: {app.config['SQLALCHEMY_DATABASE_URI']}\n")
    seed_all(app, append=args.append, verbose=args.verbose)


if __name__ == "__main__":
    main()
