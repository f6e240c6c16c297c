# nocram/models/__init__.py

from .. import db  # Import the SQLAlchemy instance from the app package

# Import all models to ensure they're registered with SQLAlchemy
from nocram.models.user import User, Role
from nocram.models.module import Module
from nocram.models.assignment import Assignment
from nocram.models.notification import NotificationPreference
from nocram.models.reminder import Reminder

__all__ = [
    'User',
    'Role',
    'Module',
    'Assignment',
    'NotificationPreference',
    'Reminder',
]
