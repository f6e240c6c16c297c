from datetime import timedelta
from unittest.mock import patch

import pytest
from apscheduler.triggers.cron import CronTrigger
from flask_apscheduler import APScheduler

from nocram import mail
from nocram.models import Reminder
from nocram.services import scheduler as scheduler_module
from nocram.services.scheduler import JOB_ID, STARTUP_JOB_ID, ReminderScheduler
from nocram.utils.time import utcnow


@pytest.fixture
def reminder_scheduler(app):
    """A private scheduler bound to the test app, always shut down afterwards."""
    rs = ReminderScheduler(APScheduler())
    rs.init_app(app)
    yield rs
    rs.shutdown(wait=False)


def _field(trigger, name):
    return next(str(f) for f in trigger.fields if f.name == name)


def test_app_exposes_scheduler_without_starting_it(app):
    rs = app.extensions["reminder_scheduler"]
    assert isinstance(rs, ReminderScheduler)
    assert rs.running is False


def test_start_registers_daily_cron_job(reminder_scheduler):
    reminder_scheduler.start()

    assert reminder_scheduler.running is True
    job = reminder_scheduler.scheduler.get_job(JOB_ID)
    assert job is not None
    assert isinstance(job.trigger, CronTrigger)
    assert _field(job.trigger, "hour") == "9"
    assert _field(job.trigger, "minute") == "0"
    assert reminder_scheduler.scheduler.get_job(STARTUP_JOB_ID) is None


def test_start_twice_is_noop(reminder_scheduler):
    reminder_scheduler.start()
    reminder_scheduler.start()

    jobs = reminder_scheduler.scheduler.get_jobs()
    assert [job.id for job in jobs] == [JOB_ID]


def test_start_under_flask_debug_logs_error(reminder_scheduler, monkeypatch, caplog):
    monkeypatch.setenv("FLASK_DEBUG", "1")
    monkeypatch.delenv("WERKZEUG_RUN_MAIN", raising=False)

    with caplog.at_level("INFO", logger="nocram.services.scheduler"):
        reminder_scheduler.start()

    assert reminder_scheduler.running is False
    assert "did not start" in caplog.text
    assert "initialized successfully" not in caplog.text
    assert reminder_scheduler.scheduler.get_job(JOB_ID) is None


def test_cron_schedule_comes_from_config(app, reminder_scheduler):
    with patch.dict(app.config, {"REMINDER_CRON_SCHEDULE": "30 7 * * *"}):
        reminder_scheduler.start()

    trigger = reminder_scheduler.scheduler.get_job(JOB_ID).trigger
    assert _field(trigger, "hour") == "7"
    assert _field(trigger, "minute") == "30"


def test_run_on_startup_adds_one_off_job(app, reminder_scheduler):
    with patch.dict(app.config, {"REMINDER_RUN_ON_STARTUP": True}):
        reminder_scheduler.start()

    assert reminder_scheduler.scheduler.get_job(STARTUP_JOB_ID) is not None


def test_shutdown_stops_scheduler(reminder_scheduler):
    reminder_scheduler.start()
    reminder_scheduler.shutdown(wait=False)

    assert reminder_scheduler.running is False


def test_trigger_now_runs_scan(app, make_user, make_assignment):
    user = make_user()
    assignment = make_assignment(user, utcnow() + timedelta(days=2))
    rs = app.extensions["reminder_scheduler"]

    with mail.record_messages() as outbox:
        assert rs.trigger_now() is True

    assert len(outbox) == 1
    assert Reminder.query.filter_by(assignment_id=assignment.id, sent=True).count() == 1


def test_trigger_now_reports_failure(app):
    rs = app.extensions["reminder_scheduler"]
    with patch.object(scheduler_module, "check_upcoming_deadlines", return_value=False):
        assert rs.trigger_now() is False
    with patch.object(scheduler_module, "check_upcoming_deadlines", side_effect=RuntimeError("boom")):
        assert rs.trigger_now() is False


def test_scheduled_run_swallows_errors(app):
    rs = app.extensions["reminder_scheduler"]
    with patch.object(scheduler_module, "check_upcoming_deadlines", side_effect=RuntimeError("boom")) as check:
        rs._run_scheduled()
    check.assert_called_once_with()
