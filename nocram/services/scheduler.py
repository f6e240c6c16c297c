# nocram/services/scheduler.py
from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta
from typing import Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.triggers.cron import CronTrigger
from flask_apscheduler import APScheduler

from nocram.services.reminder_service import check_upcoming_deadlines

logger = logging.getLogger(__name__)

JOB_ID = "check_upcoming_deadlines"
STARTUP_JOB_ID = "check_upcoming_deadlines_startup"
DEFAULT_CRON_SCHEDULE = "0 9 * * *"  # 9 AM daily
STARTUP_DELAY = timedelta(seconds=5)


class ReminderScheduler:
    """Owns the recurring deadline scan and the manual trigger.

    Nothing is scheduled on import: ``start()`` registers the cron job and
    ``shutdown()`` stops it, so tests can drive the lifecycle explicitly.
    """

    def __init__(self, scheduler: Optional[APScheduler] = None):
        self.scheduler = scheduler or APScheduler()
        self.app = None

    def init_app(self, app):
        self.app = app
        self.scheduler.init_app(app)
        self.scheduler.add_listener(self._log_job_event, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self):
        if self.running:
            logger.info("Reminder scheduler already running, skipping start")
            return

        schedule = self.app.config.get("REMINDER_CRON_SCHEDULE") or DEFAULT_CRON_SCHEDULE
        trigger = CronTrigger.from_crontab(schedule, timezone=self.app.config.get("SCHEDULER_TIMEZONE"))
        logger.info("Initializing reminder scheduler with cron: %s", schedule)

        self.scheduler.start()
        if not self.running:
            # Flask-APScheduler refuses to start under FLASK_DEBUG outside the reloader child
            logger.error("Reminder scheduler did not start (FLASK_DEBUG=%s without the reloader); "
                         "no reminder checks will run", os.environ.get("FLASK_DEBUG"))
            return

        self.scheduler.add_job(
            id=JOB_ID,
            func=self._run_scheduled,
            trigger=trigger,
            replace_existing=True,
        )

        if self.app.config.get("REMINDER_RUN_ON_STARTUP"):
            self.scheduler.add_job(
                id=STARTUP_JOB_ID,
                func=self._run_scheduled,
                trigger="date",
                run_date=datetime.now() + STARTUP_DELAY,
                replace_existing=True,
            )
            logger.info("Initial reminder check scheduled in %s", STARTUP_DELAY)

        logger.info("Reminder scheduler initialized successfully")

    def shutdown(self, wait: bool = True):
        if self.running:
            self.scheduler.shutdown(wait=wait)
            logger.info("Reminder scheduler stopped")

    def trigger_now(self, now: Optional[datetime] = None) -> bool:
        """Run one scan synchronously; the caller only learns success or failure."""
        try:
            with self.app.app_context():
                return check_upcoming_deadlines(now=now)
        except Exception as exc:  # noqa: BLE001
            logger.error("Manual reminder check failed: %s", exc, exc_info=True)
            return False

    def _run_scheduled(self):
        logger.info("Cron job triggered - running reminder check")
        try:
            with self.app.app_context():
                check_upcoming_deadlines()
        except Exception as exc:  # noqa: BLE001
            # Swallowed so the recurring job stays registered
            logger.error("Scheduled reminder check failed: %s", exc, exc_info=True)

    def _log_job_event(self, job_event):  # noqa: ANN001
        """Write a concise log line for every APScheduler job completion/error."""
        if getattr(job_event, "exception", False):
            logger.error("Scheduler job %s failed: %s", job_event.job_id, job_event.exception)
        else:
            logger.info("Scheduler job %s executed successfully.", job_event.job_id)
