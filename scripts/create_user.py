#!/usr/bin/env python3
"""Create a NoCram account with default notification preferences.

Usage: python -m scripts.create_user <email> <password> [name]
"""
import os
import sys

os.environ.setdefault('REMINDER_SCHEDULER_ENABLED', 'false')

from scripts import ScriptUtils  # noqa: E402

ScriptUtils.setup_project_path()

from flask_security.utils import hash_password  # noqa: E402

from nocram import create_app, db  # noqa: E402
from nocram.models import User  # noqa: E402
from nocram.services.preference_service import PreferenceService  # noqa: E402


def main(argv) -> int:
    if len(argv) < 3:
        print(__doc__)
        return 1
    email, password = argv[1], argv[2]
    name = argv[3] if len(argv) > 3 else None

    app = create_app()
    with app.app_context():
        if User.query.filter_by(email=email).first():
            print(f"✗ User {email} already exists")
            return 1
        user = User(email=email, password=hash_password(password), name=name, active=True)
        PreferenceService.attach_defaults(user)
        db.session.add(user)
        db.session.commit()
        print(f"✓ Created user {email} (reminder days: {user.notification_preference.default_reminder_days})")
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
