# nocram/services/reminder_policy.py
"""Timing rules for deadline reminders.

Everything here is pure: no database, no Flask context. Dates are naive UTC
instants, compared after rounding the remaining time up to whole days.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence, Tuple

DEFAULT_REMINDER_DAYS: Tuple[int, ...] = (7, 2, 1)
LOOKAHEAD_DAYS = 7

ONE_DAY = timedelta(days=1)


def parse_reminder_days(raw: Optional[str], default: Sequence[int] = DEFAULT_REMINDER_DAYS) -> Tuple[int, ...]:
    """Parse a stored ``"7,2,1"`` string into an ordered tuple of offsets.

    Missing, blank or malformed values (non-integers, negatives) fall back to
    *default* as a whole; duplicates are dropped keeping first occurrence.
    """
    if raw is None:
        return tuple(default)

    tokens = [token.strip() for token in str(raw).split(',')]
    tokens = [token for token in tokens if token]
    if not tokens:
        return tuple(default)

    days = []
    for token in tokens:
        try:
            value = int(token)
        except ValueError:
            return tuple(default)
        if value < 0:
            return tuple(default)
        if value not in days:
            days.append(value)
    return tuple(days)


def format_reminder_days(days: Iterable[int]) -> str:
    return ','.join(str(day) for day in days)


def days_until_due(due_date: datetime, now: datetime) -> int:
    """Whole days until *due_date*, rounded up (1h left counts as 1 day)."""
    return -((now - due_date) // ONE_DAY)


def in_lookahead_window(due_date: datetime, now: datetime, lookahead_days: int = LOOKAHEAD_DAYS) -> bool:
    """True when the assignment is still ahead of us and at most *lookahead_days* away."""
    return now < due_date <= now + timedelta(days=lookahead_days)


def is_reminder_due(due_date: datetime, offsets: Iterable[int], now: datetime) -> Tuple[bool, int]:
    """Return ``(due, days_until_due)``.

    A reminder is due only when the remaining day count is exactly one of the
    configured offsets; a missed day is never caught up.
    """
    days = days_until_due(due_date, now)
    return days in tuple(offsets), days


def remind_at(due_date: datetime, offset_days: int) -> datetime:
    return due_date - timedelta(days=offset_days)


def reminder_subject(title: str, days: int) -> str:
    if days == 0:
        return f"Due Today: {title}"
    if days == 1:
        return f"Due Tomorrow: {title}"
    return f"Reminder: {title} due in {days} days"
