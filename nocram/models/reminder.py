# nocram/models/reminder.py
from nocram import db
from nocram.utils.time import utcnow

REMINDER_TYPE_EMAIL = 'email'


class Reminder(db.Model):
    """One (assignment, offset) notification, either scheduled or already sent."""
    __tablename__ = 'reminders'

    id = db.Column(db.Integer, primary_key=True)
    assignment_id = db.Column(db.Integer, db.ForeignKey('assignments.id', ondelete='CASCADE'),
                              nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    remind_at = db.Column(db.DateTime, nullable=False)
    type = db.Column(db.String(20), nullable=False, default=REMINDER_TYPE_EMAIL)
    sent = db.Column(db.Boolean, nullable=False, default=False)
    sent_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Backs the recent-send lookup done on every scan
    __table_args__ = (
        db.Index('ix_reminders_assignment_sent_at', 'assignment_id', 'sent', 'sent_at'),
    )

    def __repr__(self):
        state = f'sent {self.sent_at}' if self.sent else f'at {self.remind_at}'
        return f'<Reminder {self.id} for assignment {self.assignment_id} {state}>'

    def to_dict(self):
        return {
            'id': self.id,
            'assignment_id': self.assignment_id,
            'remind_at': self.remind_at.isoformat() if self.remind_at else None,
            'type': self.type,
            'sent': self.sent,
            'sent_at': self.sent_at.isoformat() if self.sent_at else None,
        }
