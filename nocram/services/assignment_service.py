# nocram/services/assignment_service.py
"""Assignment write path, keeping the scheduled reminders in step with due dates."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from nocram import db
from nocram.models import Assignment
from nocram.models.assignment import STATUS_DONE, STATUSES
from nocram.services.preference_service import PreferenceService
from nocram.services.reminder_ledger import ReminderLedger
from nocram.utils.time import utcnow

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    'title',
    'description',
    'due_date',
    'module_id',
    'estimated_hours',
    'weighting_percent',
    'priority',
)


class AssignmentError(ValueError):
    pass


class AssignmentService:
    @staticmethod
    def create_assignment(
        user_id: int,
        title: str,
        due_date: datetime,
        module_id: Optional[int] = None,
        description: Optional[str] = None,
        estimated_hours: Optional[float] = None,
        weighting_percent: Optional[float] = None,
        priority: str = 'medium',
        now: Optional[datetime] = None,
    ) -> Assignment:
        assignment = Assignment(
            user_id=user_id,
            module_id=module_id,
            title=title,
            description=description,
            due_date=due_date,
            estimated_hours=estimated_hours,
            weighting_percent=weighting_percent,
            priority=priority,
        )
        db.session.add(assignment)
        db.session.commit()

        ReminderLedger.schedule_future(
            assignment.id, user_id, assignment.due_date,
            PreferenceService.reminder_days_for(user_id), now=now,
        )
        logger.info("Created assignment %s for user %s", assignment.id, user_id)
        return assignment

    @staticmethod
    def update_assignment(assignment: Assignment, now: Optional[datetime] = None, **changes) -> Assignment:
        """Apply *changes*; a new due date replaces every reminder not yet sent."""
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise AssignmentError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        old_due_date = assignment.due_date
        for field, value in changes.items():
            setattr(assignment, field, value)
        db.session.commit()

        if 'due_date' in changes and changes['due_date'] != old_due_date:
            ReminderLedger.invalidate_unsent(assignment.id)
            ReminderLedger.schedule_future(
                assignment.id, assignment.user_id, assignment.due_date,
                PreferenceService.reminder_days_for(assignment.user_id), now=now,
            )
            logger.info("Due date of assignment %s moved from %s to %s; reminders rescheduled",
                        assignment.id, old_due_date, assignment.due_date)
        return assignment

    @staticmethod
    def set_status(assignment: Assignment, status: str) -> Assignment:
        if status not in STATUSES:
            raise AssignmentError(f"Invalid status: {status}")
        assignment.status = status
        assignment.completed_at = utcnow() if status == STATUS_DONE else None
        db.session.commit()
        return assignment

    @staticmethod
    def delete_assignment(assignment: Assignment) -> None:
        assignment_id = assignment.id
        # Reminders go with it through the relationship cascade
        db.session.delete(assignment)
        db.session.commit()
        logger.info("Deleted assignment %s", assignment_id)
