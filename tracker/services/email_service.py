"""
Outgoing mail for invitations and activity notifications.

Messages are rendered from the templates registered in ``TEMPLATES``. With
no MAIL_SERVER configured (development and tests) a message is logged and
counted as delivered; otherwise it goes out over SMTP using the MAIL_*
settings from ``tracker.config``.
"""

from __future__ import annotations

import logging
import re
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from html import escape
from typing import Any

from flask import current_app

from tracker.models.auth import ROLE_ADMIN, ROLE_FIELD, ROLE_MANAGER

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30

ROLE_LABELS = {
    ROLE_ADMIN: "Administrator",
    ROLE_MANAGER: "Manager",
    ROLE_FIELD: "Field agent",
}

_TAG_RE = re.compile(r"<[^>]+>")


class _Placeholders(dict):
    # unknown {names} survive formatting unchanged
    def __missing__(self, key):
        return "{" + key + "}"


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    accent: str
    body: str

    def render(self, context: dict[str, Any]) -> tuple[str, str]:
        """Return ``(subject, html)``; only the HTML side is escaped."""
        subject = self.subject.format_map(_Placeholders({k: str(v) for k, v in context.items()}))
        body = self.body.format_map(_Placeholders({k: escape(str(v)) for k, v in context.items()}))
        html = (
            '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
            f'<h2 style="background: {self.accent}; color: #fff; margin: 0; padding: 14px 20px;">'
            "Activity Tracker</h2>"
            f'<div style="padding: 20px; border: 1px solid #e2e8f0;">{body}</div>'
            '<p style="color: #94a3b8; font-size: 12px; text-align: center;">'
            "Sent automatically by Activity Tracker.</p>"
            "</div>"
        )
        return subject, html


TEMPLATES: dict[str, EmailTemplate] = {
    "invitation": EmailTemplate(
        subject="You're invited to Activity Tracker",
        accent="#4f46e5",
        body=(
            "<p>Hello <strong>{recipient_name}</strong>,</p>"
            "<p>{invited_by} has given you an Activity Tracker account with the "
            "<strong>{role_label}</strong> role.</p>"
            '<p><a href="{accept_link}">Set your password and activate the account</a></p>'
            "<p>This link stops working after {expires_days} days: {accept_link}</p>"
        ),
    ),
    "activity_created": EmailTemplate(
        subject="New activity: {activity_title}",
        accent="#059669",
        body=(
            "<p>Hello <strong>{recipient_name}</strong>,</p>"
            "<p>{created_by} recorded a new activity in <strong>{project_name}</strong>:</p>"
            "<table>"
            "<tr><td>Title</td><td>{activity_title}</td></tr>"
            "<tr><td>Date</td><td>{activity_date}</td></tr>"
            "<tr><td>Location</td><td>{location}</td></tr>"
            "<tr><td>Participants</td><td>{participant_count}</td></tr>"
            "</table>"
            '<p><a href="{activity_link}">Review it in the tracker</a></p>'
        ),
    ),
}


class EmailService:

    @staticmethod
    def is_configured() -> bool:
        return bool(current_app.config.get("MAIL_SERVER"))

    @staticmethod
    def get_template(template_name: str) -> EmailTemplate | None:
        return TEMPLATES.get(template_name)

    @classmethod
    def send(cls, *, to_email: str, to_name: str | None = None, subject: str, html_body: str) -> bool:
        """Deliver one message. False means SMTP refused it; nothing is raised."""
        if not cls.is_configured():
            logger.info("Mail not configured, skipping delivery to %s: %s", to_email, subject)
            return True
        try:
            cls._send_smtp(to_email=to_email, to_name=to_name, subject=subject, html_body=html_body)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Delivery to %s failed: %s", to_email, exc)
            return False
        logger.info("Mail delivered to %s: %s", to_email, subject)
        return True

    @classmethod
    def send_from_template(cls, *, to_email: str, to_name: str | None = None,
                           template_name: str, context: dict[str, Any]) -> bool:
        template = cls.get_template(template_name)
        if template is None:
            logger.warning("No email template named %r", template_name)
            return False
        subject, html_body = template.render(context)
        return cls.send(to_email=to_email, to_name=to_name, subject=subject, html_body=html_body)

    @staticmethod
    def _send_smtp(*, to_email: str, to_name: str | None, subject: str, html_body: str) -> None:
        cfg = current_app.config
        host = cfg["MAIL_SERVER"]

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = cfg.get("MAIL_DEFAULT_SENDER") or f"noreply@{host}"
        message["To"] = f"{to_name} <{to_email}>" if to_name else to_email
        message.set_content(_TAG_RE.sub(" ", html_body))
        message.add_alternative(html_body, subtype="html")

        with smtplib.SMTP(host, cfg.get("MAIL_PORT", 587), timeout=SMTP_TIMEOUT_SECONDS) as smtp:
            if cfg.get("MAIL_USE_TLS", True):
                smtp.starttls()
            if cfg.get("MAIL_USERNAME") and cfg.get("MAIL_PASSWORD"):
                smtp.login(cfg["MAIL_USERNAME"], cfg["MAIL_PASSWORD"])
            smtp.send_message(message)


def send_invitation_email(*, recipient_email, recipient_name, invitation_token, role, invited_by) -> bool:
    frontend = current_app.config.get("FRONTEND_URL", "").rstrip("/")
    return EmailService.send_from_template(
        to_email=recipient_email,
        to_name=recipient_name,
        template_name="invitation",
        context={
            "recipient_name": recipient_name,
            "invited_by": invited_by,
            "role_label": ROLE_LABELS.get(role, role),
            "accept_link": f"{frontend}/accept-invitation?token={invitation_token}",
            "expires_days": current_app.config.get("INVITATION_EXPIRES_DAYS", 7),
        },
    )
