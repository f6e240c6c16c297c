# nocram/services/reminder_service.py
"""Deadline scan: find assignments due for a reminder and email their owners.

One call of :func:`run_deadline_scan` is one scan cycle. Candidates are
assignments that are not done, fall inside the lookahead window and have
no reminder sent in the last 24 hours. Each candidate whose remaining day
count matches one of its owner's offsets gets one email; successful sends
are written to the ledger, failed ones are simply retried next cycle.

Manual and scheduled triggers may overlap. The recent-send check is the
only guard between them, so two overlapping cycles can both email the
same assignment once.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from nocram import db
from nocram.models import Assignment, Module, NotificationPreference, User
from nocram.models.assignment import STATUS_DONE
from nocram.services.email_service import EmailService
from nocram.services.reminder_ledger import ReminderLedger
from nocram.services.reminder_policy import (
    LOOKAHEAD_DAYS,
    is_reminder_due,
    parse_reminder_days,
    reminder_subject,
)
from nocram.utils.time import utcnow

logger = logging.getLogger(__name__)


class ReminderScanError(Exception):
    """Raised when the candidate query fails and the whole cycle is aborted."""
    pass


@dataclass
class ScanSummary:
    candidates: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0


def fetch_candidates(now: datetime, lookahead_days: int = LOOKAHEAD_DAYS) -> List[tuple]:
    """Return ``(assignment, module_name, email, user_name, reminder_days)`` rows, soonest first."""
    cutoff = now - ReminderLedger.RECENT_WINDOW
    horizon = now + timedelta(days=lookahead_days)
    return (
        db.session.query(
            Assignment,
            Module.name,
            User.email,
            User.name,
            NotificationPreference.default_reminder_days,
        )
        .join(User, Assignment.user_id == User.id)
        .join(NotificationPreference, NotificationPreference.user_id == User.id)
        .outerjoin(Module, Assignment.module_id == Module.id)
        .filter(
            Assignment.status != STATUS_DONE,
            NotificationPreference.email_enabled.is_(True),
            Assignment.due_date > now,
            Assignment.due_date <= horizon,
            ~ReminderLedger.recent_send_exists(cutoff),
        )
        .order_by(Assignment.due_date.asc())
        .all()
    )


def _reminder_context(assignment: Assignment, module_name: Optional[str], user_name: Optional[str], days: int) -> dict:
    return {
        "title": assignment.title,
        "module_name": module_name,
        "user_name": user_name,
        "due_date": assignment.due_date,
        "due_date_display": assignment.due_date.strftime("%A, %d %B %Y at %H:%M"),
        "description": assignment.description,
        "estimated_hours": assignment.estimated_hours,
        "weighting_percent": assignment.weighting_percent,
        "priority": assignment.priority,
        "days_until_due": days,
        "dashboard_url": f"{current_app.config['CLIENT_URL'].rstrip('/')}/dashboard",
        "preheader": f"{assignment.title} is due {assignment.due_date:%d %b %Y}",
        "current_year": utcnow().year,
    }


def _send_reminder(assignment, module_name, email, user_name, days, now) -> bool:
    subject = reminder_subject(assignment.title, days)
    context = _reminder_context(assignment, module_name, user_name, days)

    result = EmailService.send_assignment_reminder(email, subject, context)
    if not result.success:
        logger.error("Failed to send reminder for assignment %s: %s", assignment.id, result.error)
        return False

    try:
        ReminderLedger.record_send(assignment.id, assignment.user_id, now=now)
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Reminder for assignment %s was sent but could not be recorded: %s",
                     assignment.id, exc, exc_info=True)
        return False

    logger.info("Reminder sent to %s for: %s (%s)", email, assignment.title, result.message_id)
    return True


def run_deadline_scan(now: Optional[datetime] = None) -> ScanSummary:
    """Run one scan cycle. Raises :class:`ReminderScanError` if candidates cannot be loaded."""
    now = now or utcnow()
    lookahead_days = current_app.config.get("REMINDER_LOOKAHEAD_DAYS", LOOKAHEAD_DAYS)
    fallback_days = parse_reminder_days(current_app.config.get("REMINDER_DEFAULT_DAYS"))

    logger.info("Checking for upcoming deadlines...")
    try:
        rows = fetch_candidates(now, lookahead_days)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise ReminderScanError(f"Candidate query failed: {exc}") from exc

    summary = ScanSummary(candidates=len(rows))
    logger.info("Found %d assignment(s) inside the reminder window", len(rows))

    for assignment, module_name, email, user_name, raw_days in rows:
        assignment_id = assignment.id
        try:
            offsets = parse_reminder_days(raw_days, default=fallback_days)
            due, days = is_reminder_due(assignment.due_date, offsets, now)
            if not due:
                summary.skipped += 1
                continue

            if _send_reminder(assignment, module_name, email, user_name, days, now):
                summary.sent += 1
            else:
                summary.failed += 1
        except Exception as exc:  # noqa: BLE001
            db.session.rollback()
            summary.failed += 1
            logger.error("Reminder for assignment %s failed: %s", assignment_id, exc, exc_info=True)

    logger.info("Reminder check completed: %d sent, %d skipped, %d failed",
                summary.sent, summary.skipped, summary.failed)
    return summary


def check_upcoming_deadlines(now: Optional[datetime] = None) -> bool:
    """Top-level entry for both triggers; logs failures and never raises."""
    try:
        run_deadline_scan(now=now)
    except ReminderScanError as exc:
        logger.error("Error checking deadlines: %s", exc, exc_info=True)
        return False
    except Exception as exc:  # noqa: BLE001
        logger.error("Unexpected error checking deadlines: %s", exc, exc_info=True)
        return False
    return True
