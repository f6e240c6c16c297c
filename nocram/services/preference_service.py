# nocram/services/preference_service.py
from __future__ import annotations

from typing import Iterable, Optional, Tuple, Union

from flask import current_app

from nocram import db
from nocram.models import NotificationPreference, User
from nocram.services.reminder_policy import format_reminder_days, parse_reminder_days

MAX_REMINDER_DAYS = 365


class PreferenceError(ValueError):
    """Invalid notification settings submitted by a user."""
    pass


class PreferenceService:
    @staticmethod
    def default_reminder_days() -> str:
        return format_reminder_days(parse_reminder_days(current_app.config.get("REMINDER_DEFAULT_DAYS")))

    @staticmethod
    def attach_defaults(user: User) -> NotificationPreference:
        """Give a freshly registered user default preferences; committed with the user."""
        if user.notification_preference is None:
            user.notification_preference = NotificationPreference(
                email_enabled=True,
                default_reminder_days=PreferenceService.default_reminder_days(),
            )
        return user.notification_preference

    @staticmethod
    def get_or_create(user_id: int) -> NotificationPreference:
        pref = NotificationPreference.query.filter_by(user_id=user_id).first()
        if pref is None:
            pref = NotificationPreference(
                user_id=user_id,
                email_enabled=True,
                default_reminder_days=PreferenceService.default_reminder_days(),
            )
            db.session.add(pref)
            db.session.commit()
            current_app.logger.info(f"Created default notification preferences for user {user_id}")
        return pref

    @staticmethod
    def reminder_days_for(user_id: int) -> Tuple[int, ...]:
        pref = NotificationPreference.query.filter_by(user_id=user_id).first()
        fallback = parse_reminder_days(current_app.config.get("REMINDER_DEFAULT_DAYS"))
        if pref is None:
            return fallback
        return parse_reminder_days(pref.default_reminder_days, default=fallback)

    @staticmethod
    def normalize_reminder_days(value: Union[str, Iterable[int], None]) -> str:
        """Strictly validate submitted offsets and return their stored form.

        Unlike reading, which silently falls back to defaults, a bad
        submission is rejected so the user sees what was wrong.
        """
        if value is None:
            raise PreferenceError("reminder_days is required")
        if isinstance(value, str):
            tokens = [token.strip() for token in value.split(",") if token.strip()]
        else:
            tokens = list(value)
        if not tokens:
            raise PreferenceError("At least one reminder day is required")

        days = []
        for token in tokens:
            if isinstance(token, bool):
                raise PreferenceError(f"Invalid reminder day: {token!r}")
            try:
                day = int(token)
            except (TypeError, ValueError):
                raise PreferenceError(f"Invalid reminder day: {token!r}")
            if day < 0 or day > MAX_REMINDER_DAYS:
                raise PreferenceError(f"Reminder days must be between 0 and {MAX_REMINDER_DAYS}")
            if day not in days:
                days.append(day)
        return format_reminder_days(days)

    @staticmethod
    def save_preferences(
        user_id: int,
        email_enabled: Optional[bool] = None,
        reminder_days: Union[str, Iterable[int], None] = None,
    ) -> NotificationPreference:
        if email_enabled is not None and not isinstance(email_enabled, bool):
            raise PreferenceError("email_enabled must be true or false")
        stored_days = None
        if reminder_days is not None:
            stored_days = PreferenceService.normalize_reminder_days(reminder_days)

        pref = PreferenceService.get_or_create(user_id)
        if email_enabled is not None:
            pref.email_enabled = email_enabled
        if stored_days is not None:
            pref.default_reminder_days = stored_days
        try:
            db.session.commit()
        except Exception as e:
            current_app.logger.error(f"Failed to save notification preferences: {e}")
            db.session.rollback()
            raise
        return pref
