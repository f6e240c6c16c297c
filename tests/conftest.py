"""Pytest fixtures for Flask app testing.

Provides `app`, `client`, `auth_client` and small factories for users and
assignments. The app uses an in-memory SQLite database and pbkdf2 password
hashing. Mail is suppressed (use ``mail.record_messages()`` to capture it),
CSRF is off, and the recurring reminder scheduler is never started.

Every test runs inside its own application context and all tables are
emptied afterwards, so tests never see each other's rows.
"""
from __future__ import annotations

from datetime import datetime

import pytest
from flask_security.utils import hash_password

from nocram import create_app, db
from nocram.models import Assignment, Module, NotificationPreference, User

###############################################################################
# Core application & database fixtures
###############################################################################

@pytest.fixture(scope="session")  # one app instance for the entire test session
def app():  # noqa: D401 – required fixture name
    """Create and configure a new app instance for this test session."""
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "testing-secret-key",
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "SECURITY_PASSWORD_HASH": "pbkdf2_sha512",
            "SECURITY_PASSWORD_SALT": "salt",
            "SECURITY_URL_PREFIX": "/security",
            "SECURITY_REGISTERABLE": True,
            "SECURITY_SEND_REGISTER_EMAIL": False,
            "SECURITY_EMAIL_VALIDATOR_ARGS": {"check_deliverability": False},
            # Disable CSRF & e-mail sending for tests
            "WTF_CSRF_ENABLED": False,
            "MAIL_SUPPRESS_SEND": True,
            "MAIL_DEFAULT_SENDER": "noreply@nocram.test",
            # Avoid APScheduler side-effects in tests
            "SCHEDULER_API_ENABLED": False,
            "REMINDER_SCHEDULER_ENABLED": False,
            "CLIENT_URL": "http://nocram.test",
        }
    )

    with app.app_context():
        db.create_all()

    yield app

    # Teardown – drop all tables after the test session ends
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Run each test inside an app context and wipe every table afterwards."""
    with app.app_context():
        yield
        db.session.rollback()
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()


@pytest.fixture
def now():
    """A fixed evaluation instant so day arithmetic is deterministic."""
    return datetime(2026, 3, 2, 9, 0, 0)

###############################################################################
# Factories
###############################################################################

@pytest.fixture
def make_user():
    """Create a user, optionally with notification preferences."""
    counter = {"n": 0}

    def _make_user(email=None, reminder_days="7,2,1", email_enabled=True, with_preferences=True, name="Test Student"):
        counter["n"] += 1
        user = User(
            email=email or f"student{counter['n']}@example.com",
            password=hash_password("password"),
            name=name,
            active=True,
        )
        db.session.add(user)
        db.session.commit()
        if with_preferences:
            db.session.add(NotificationPreference(
                user_id=user.id,
                email_enabled=email_enabled,
                default_reminder_days=reminder_days,
            ))
            db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_assignment():
    """Create an assignment directly, without scheduling reminders."""

    def _make_assignment(user, due_date, title="Essay", status="not_started", module_name="Algorithms", **extra):
        module = None
        if module_name:
            module = Module(user_id=user.id, name=module_name, code="CS101")
            db.session.add(module)
            db.session.commit()
        assignment = Assignment(
            user_id=user.id,
            module_id=module.id if module else None,
            title=title,
            due_date=due_date,
            status=status,
            **extra,
        )
        db.session.add(assignment)
        db.session.commit()
        return assignment

    return _make_assignment

###############################################################################
# Helper fixtures – users & authenticated clients
###############################################################################

@pytest.fixture
def regular_user(make_user):
    """Create a standard active user with default preferences."""
    return make_user(email="testuser@example.com")


@pytest.fixture
def client(app):
    """Return an unauthenticated test client."""
    return app.test_client()


@pytest.fixture
def auth_client(client, regular_user):
    """A test client logged in as *regular_user*."""
    response = client.post('/security/login', json={
        'email': 'testuser@example.com',
        'password': 'password'
    })
    assert response.status_code == 200, f"Login failed with status {response.status_code}"
    return client
