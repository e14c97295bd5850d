"""
Activity Tracker
Notification Dispatcher.

The activity repository publishes an ``ActivityCreated`` event after its
transaction commits. The dispatcher hands the event to every registered
handler, on a daemon thread inside an app context (``NOTIFICATIONS_ASYNC``
true) or inline (testing). Handler failures are logged and swallowed: a
notification problem never fails or rolls back the activity itself.

Events are fully resolved before publishing (recipient list, project name,
location label), so handlers do no database work.

Usage:
    from tracker.services.notification import ActivityCreated, dispatcher

    dispatcher.publish(ActivityCreated(...))
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from flask import current_app

from tracker.services.email_service import EmailService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    email: str
    name: str


@dataclass(frozen=True)
class ActivityCreated:
    """Post-commit event: a new activity exists."""

    activity_id: str
    activity_title: str
    project_id: int
    project_name: str
    created_by_name: str
    activity_date: str
    location: str
    participant_count: int
    status: str
    recipients: tuple = field(default_factory=tuple)


# ═══════════════════════════════════════════════════════════════════════════
#  Handlers
# ═══════════════════════════════════════════════════════════════════════════

def email_project_managers(event: ActivityCreated) -> None:
    """Email every recipient resolved for the event."""
    base = current_app.config.get("FRONTEND_URL", "").rstrip("/")
    for recipient in event.recipients:
        EmailService.send_from_template(
            to_email=recipient.email,
            to_name=recipient.name,
            template_name="activity_created",
            context={
                "recipient_name": recipient.name,
                "activity_title": event.activity_title,
                "project_name": event.project_name,
                "activity_date": event.activity_date or "n/a",
                "location": event.location or "n/a",
                "participant_count": event.participant_count,
                "created_by": event.created_by_name,
                "activity_link": f"{base}/activities/{event.activity_id}",
            },
        )


# ═══════════════════════════════════════════════════════════════════════════
#  Dispatcher
# ═══════════════════════════════════════════════════════════════════════════

class NotificationDispatcher:
    """Fan an event out to its handlers, isolating their failures."""

    def __init__(self):
        self._handlers: dict[type, list] = {}

    def subscribe(self, event_type: type, handler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    def handlers_for(self, event) -> list:
        return list(self._handlers.get(type(event), []))

    def publish(self, event) -> threading.Thread | None:
        """Deliver ``event``. Returns the worker thread when running async."""
        handlers = self.handlers_for(event)
        if not handlers:
            return None

        app = current_app._get_current_object()
        if not app.config.get("NOTIFICATIONS_ASYNC", True):
            self._run(event, handlers)
            return None

        worker = threading.Thread(
            target=self._run_in_context,
            args=(app, event, handlers),
            name=f"notify-{type(event).__name__}",
            daemon=True,
        )
        worker.start()
        return worker

    def _run_in_context(self, app, event, handlers) -> None:
        with app.app_context():
            self._run(event, handlers)

    @staticmethod
    def _run(event, handlers) -> None:
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                # best-effort delivery: log and keep going
                logger.exception(
                    "Notification handler %s failed for %s",
                    getattr(handler, "__name__", handler), type(event).__name__,
                    extra={"event_type": type(event).__name__,
                           "activity_id": getattr(event, "activity_id", None)},
                )


dispatcher = NotificationDispatcher()
dispatcher.subscribe(ActivityCreated, email_project_managers)
