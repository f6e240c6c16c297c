#!/usr/bin/env python3
"""Run one deadline scan from the command line and exit.

Usage: python -m scripts.run_reminder_check
Exit code is 0 when the scan completed, 1 when it was aborted.
"""
import os
import sys

# The one-off run must not start the recurring scheduler as well
os.environ['REMINDER_SCHEDULER_ENABLED'] = 'false'
os.environ['REMINDER_RUN_ON_STARTUP'] = 'false'

from scripts import ScriptUtils  # noqa: E402

ScriptUtils.setup_project_path()

from nocram import create_app  # noqa: E402


def main() -> int:
    app = create_app()
    reminder_scheduler = app.extensions['reminder_scheduler']
    if reminder_scheduler.trigger_now():
        print("✓ Reminder check completed")
        return 0
    print("✗ Reminder check failed, see log for details")
    return 1


if __name__ == '__main__':
    sys.exit(main())
