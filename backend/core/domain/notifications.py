"""
core.domain.notifications — Fire-and-forget e-mail notifications.

Centralises outbound e-mail so every app uses one consistent
entry-point rather than calling ``send_mail`` directly.

Design decisions
----------------
* **Deferred until commit** — ``NotificationService.send`` registers the
  delivery with ``transaction.on_commit``.  A rolled-back mutation never
  sends mail, and a mail failure can never roll back the mutation that
  triggered it.
* **Failures are logged, not raised** — SMTP errors are recorded with a
  traceback and otherwise ignored; the primary operation has already
  committed.
* **Templated events** — callers pass an ``event_type`` key and a
  context dict; subjects and bodies live in ``_EVENT_TEMPLATES``.

Usage::

    from core.domain.notifications import NotificationService

    NotificationService.send(
        recipients=user.email,
        event_type="password_reset",
        context={"reset_url": url, "minutes": 10},
    )
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction

logger = logging.getLogger(__name__)

# ── Event-type → (subject, body) templates ──────────────────────────
# Bodies are ``str.format`` templates filled from the caller's context.
_EVENT_TEMPLATES: dict[str, tuple[str, str]] = {
    "password_reset": (
        "Password reset request",
        "You requested a password reset.\n\n"
        "Open the link below within {minutes} minutes to choose a new password:\n"
        "{reset_url}\n\n"
        "If you did not request this, you can ignore this e-mail.",
    ),
    "registration_invite": (
        "Shaykh registration invitation",
        "You have been invited to register as a shaykh.\n\n"
        "Complete your registration here before {expires_at}:\n"
        "{registration_url}",
    ),
    "case_assigned": (
        "New case assigned",
        "A {case_type} case (#{case_id}) has been assigned to you.",
    ),
    "case_status_changed": (
        "Case status updated",
        "Your {case_type} request (#{case_id}) is now '{status}'.",
    ),
    "meeting_scheduled": (
        "Meeting scheduled",
        "A meeting for {case_type} case #{case_id} has been scheduled "
        "on {date} at {time} ({location}).",
    ),
}


class NotificationService:
    """
    Stateless helper for dispatching notification e-mails.

    All methods are classmethods; no instance state is needed.
    """

    @classmethod
    def render(cls, event_type: str, context: dict[str, Any] | None = None) -> tuple[str, str]:
        """Return ``(subject, body)`` for ``event_type``."""
        subject, body = _EVENT_TEMPLATES.get(
            event_type,
            (event_type.replace("_", " ").capitalize(), f"Event: {event_type}"),
        )
        try:
            return subject, body.format(**(context or {}))
        except KeyError:
            logger.warning("Missing context keys for notification template %s", event_type)
            return subject, body

    @classmethod
    def send(
        cls,
        *,
        recipients: str | Iterable[str],
        event_type: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """
        Schedule one e-mail to ``recipients`` after the current
        transaction commits (immediately when no transaction is open).

        Args:
            recipients: A single address or an iterable of addresses.
                        Empty values are dropped.
            event_type: Key into ``_EVENT_TEMPLATES``.  If unknown the
                        raw event_type is used as the subject.
            context:    Template variables.
        """
        if isinstance(recipients, str):
            recipients = [recipients]
        recipients = [address for address in recipients if address]

        if not recipients:
            logger.warning(
                "NotificationService.send called with empty recipients for event_type=%s",
                event_type,
            )
            return

        subject, body = cls.render(event_type, context)
        transaction.on_commit(lambda: cls._deliver(recipients, subject, body, event_type))

    @staticmethod
    def _deliver(recipients: list[str], subject: str, body: str, event_type: str) -> None:
        try:
            send_mail(
                subject,
                body,
                settings.DEFAULT_FROM_EMAIL,
                recipients,
                fail_silently=False,
            )
        except Exception:
            logger.exception(
                "E-mail delivery failed [%s] to %d recipient(s)",
                event_type,
                len(recipients),
            )
            return

        logger.info("Sent %d e-mail(s) [%s]", len(recipients), event_type)
