# nocram/services/reminder_ledger.py
"""Persisted record of reminders: what was sent, and what is still scheduled."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import and_, exists

from nocram import db
from nocram.models.assignment import Assignment
from nocram.models.reminder import REMINDER_TYPE_EMAIL, Reminder
from nocram.services.reminder_policy import remind_at
from nocram.utils.time import utcnow

logger = logging.getLogger(__name__)


class ReminderLedger:
    # At most one sent reminder per assignment inside this window
    RECENT_WINDOW = timedelta(hours=24)

    @staticmethod
    def _recent_send_clause(assignment_id, cutoff: datetime):
        return and_(
            Reminder.assignment_id == assignment_id,
            Reminder.sent.is_(True),
            Reminder.sent_at > cutoff,
        )

    @staticmethod
    def recent_send_exists(cutoff: datetime):
        """Correlated EXISTS over ``assignments.id`` for use inside the scan query."""
        return exists().where(ReminderLedger._recent_send_clause(Assignment.id, cutoff))

    @staticmethod
    def has_recent_send(assignment_id: int, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        cutoff = now - ReminderLedger.RECENT_WINDOW
        return db.session.query(
            exists().where(ReminderLedger._recent_send_clause(assignment_id, cutoff))
        ).scalar()

    @staticmethod
    def record_send(assignment_id: int, user_id: int, now: Optional[datetime] = None) -> Reminder:
        now = now or utcnow()
        reminder = Reminder(
            assignment_id=assignment_id,
            user_id=user_id,
            remind_at=now,
            type=REMINDER_TYPE_EMAIL,
            sent=True,
            sent_at=now,
        )
        db.session.add(reminder)
        db.session.commit()
        return reminder

    @staticmethod
    def invalidate_unsent(assignment_id: int) -> int:
        """Delete every reminder for the assignment that has not gone out yet."""
        removed = Reminder.query.filter(
            Reminder.assignment_id == assignment_id,
            Reminder.sent.is_(False),
        ).delete()
        db.session.commit()
        logger.debug("Removed %d unsent reminder(s) for assignment %s", removed, assignment_id)
        return removed

    @staticmethod
    def schedule_future(
        assignment_id: int,
        user_id: int,
        due_date: datetime,
        offsets: Iterable[int],
        now: Optional[datetime] = None,
    ) -> List[Reminder]:
        """Insert one unsent reminder per offset whose fire time is still ahead."""
        now = now or utcnow()
        created = []
        for offset in offsets:
            fire_at = remind_at(due_date, offset)
            if fire_at <= now:
                continue
            reminder = Reminder(
                assignment_id=assignment_id,
                user_id=user_id,
                remind_at=fire_at,
                type=REMINDER_TYPE_EMAIL,
                sent=False,
            )
            db.session.add(reminder)
            created.append(reminder)
        db.session.commit()
        logger.debug("Scheduled %d reminder(s) for assignment %s", len(created), assignment_id)
        return created

    @staticmethod
    def upcoming_for_user(user_id: int, now: Optional[datetime] = None) -> List[Reminder]:
        now = now or utcnow()
        return (
            Reminder.query
            .filter(
                Reminder.user_id == user_id,
                Reminder.sent.is_(False),
                Reminder.remind_at > now,
            )
            .order_by(Reminder.remind_at.asc())
            .all()
        )
