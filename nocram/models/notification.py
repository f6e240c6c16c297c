# nocram/models/notification.py
from nocram import db
from nocram.services.reminder_policy import DEFAULT_REMINDER_DAYS, format_reminder_days, parse_reminder_days
from nocram.utils.time import utcnow


class NotificationPreference(db.Model):
    __tablename__ = 'notification_preferences'

    id = db.Column(db.Integer, primary_key=True)
    # A user has at most one preference row
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True, index=True)
    email_enabled = db.Column(db.Boolean, nullable=False, default=True)
    # Comma-separated day offsets, e.g. "7,2,1"
    default_reminder_days = db.Column(db.String(64), nullable=True,
                                      default=format_reminder_days(DEFAULT_REMINDER_DAYS))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship('User', backref=db.backref('notification_preference', uselist=False,
                                                      cascade='all, delete-orphan'))

    @property
    def reminder_days(self):
        return parse_reminder_days(self.default_reminder_days)

    def to_dict(self):
        return {
            'email_enabled': bool(self.email_enabled),
            'reminder_days': list(self.reminder_days),
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
