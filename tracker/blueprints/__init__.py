"""
Activity Tracker
Blueprint registry.
"""

from tracker.blueprints.activity_bp import activity_bp
from tracker.blueprints.auth_bp import auth_bp
from tracker.blueprints.dashboard_bp import dashboard_bp
from tracker.blueprints.finance_bp import finance_bp
from tracker.blueprints.health_bp import health_bp
from tracker.blueprints.project_bp import project_bp
from tracker.blueprints.reference_bp import reference_bp
from tracker.blueprints.user_bp import user_bp

ALL_BLUEPRINTS = (
    auth_bp,
    health_bp,
    activity_bp,
    dashboard_bp,
    reference_bp,
    project_bp,
    user_bp,
    finance_bp,
)
