# nocram/models/module.py
from nocram import db
from nocram.utils.time import utcnow


class Module(db.Model):
    """A course module that groups a user's assignments."""
    __tablename__ = 'modules'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(50))
    color = db.Column(db.String(20))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship('User', backref=db.backref('modules', lazy='dynamic', cascade='all, delete-orphan'))

    def __repr__(self):
        return f'<Module {self.code or self.name} for User {self.user_id}>'
