# nocram/models/assignment.py
from nocram import db
from nocram.utils.time import utcnow

STATUS_NOT_STARTED = 'not_started'
STATUS_IN_PROGRESS = 'in_progress'
STATUS_DONE = 'done'

STATUSES = (STATUS_NOT_STARTED, STATUS_IN_PROGRESS, STATUS_DONE)


class Assignment(db.Model):
    __tablename__ = 'assignments'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    module_id = db.Column(db.Integer, db.ForeignKey('modules.id', ondelete='SET NULL'), nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    # Naive UTC instant
    due_date = db.Column(db.DateTime, nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_NOT_STARTED)
    completed_at = db.Column(db.DateTime, nullable=True)
    estimated_hours = db.Column(db.Float, nullable=True)
    weighting_percent = db.Column(db.Float, nullable=True)
    priority = db.Column(db.String(20), nullable=False, default='medium')
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship('User', backref=db.backref('assignments', lazy='dynamic'))
    module = db.relationship('Module', backref=db.backref('assignments', lazy='dynamic'))
    reminders = db.relationship('Reminder', backref='assignment', lazy=True,
                                cascade='all, delete-orphan')

    @property
    def is_done(self):
        return self.status == STATUS_DONE

    def __repr__(self):
        return f'<Assignment {self.id} "{self.title}" due {self.due_date}>'
