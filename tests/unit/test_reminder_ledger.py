from datetime import timedelta

from nocram import db
from nocram.models import Reminder
from nocram.services.reminder_ledger import ReminderLedger


def test_record_send_inserts_sent_email_row(make_user, make_assignment, now):
    user = make_user()
    assignment = make_assignment(user, now + timedelta(days=2))

    reminder = ReminderLedger.record_send(assignment.id, user.id, now=now)

    stored = db.session.get(Reminder, reminder.id)
    assert stored.sent is True
    assert stored.sent_at == now
    assert stored.type == "email"
    assert stored.user_id == user.id


def test_has_recent_send_respects_24_hour_window(make_user, make_assignment, now):
    user = make_user()
    assignment = make_assignment(user, now + timedelta(days=2))
    assert ReminderLedger.has_recent_send(assignment.id, now=now) is False

    ReminderLedger.record_send(assignment.id, user.id, now=now)

    assert ReminderLedger.has_recent_send(assignment.id, now=now + timedelta(hours=23)) is True
    assert ReminderLedger.has_recent_send(assignment.id, now=now + timedelta(hours=24)) is False


def test_unsent_rows_do_not_count_as_recent_send(make_user, make_assignment, now):
    user = make_user()
    assignment = make_assignment(user, now + timedelta(days=5))
    ReminderLedger.schedule_future(assignment.id, user.id, assignment.due_date, (2, 1), now=now)

    assert ReminderLedger.has_recent_send(assignment.id, now=now) is False


def test_recent_send_is_per_assignment(make_user, make_assignment, now):
    user = make_user()
    first = make_assignment(user, now + timedelta(days=2), title="First")
    second = make_assignment(user, now + timedelta(days=2), title="Second")

    ReminderLedger.record_send(first.id, user.id, now=now)

    assert ReminderLedger.has_recent_send(first.id, now=now) is True
    assert ReminderLedger.has_recent_send(second.id, now=now) is False


def test_schedule_future_skips_offsets_already_past(make_user, make_assignment, now):
    user = make_user()
    due = now + timedelta(days=3)
    assignment = make_assignment(user, due)

    created = ReminderLedger.schedule_future(assignment.id, user.id, due, (7, 2, 1), now=now)

    assert sorted(r.remind_at for r in created) == [due - timedelta(days=2), due - timedelta(days=1)]
    assert all(r.sent is False and r.sent_at is None for r in created)


def test_invalidate_unsent_keeps_sent_rows(make_user, make_assignment, now):
    user = make_user()
    assignment = make_assignment(user, now + timedelta(days=5))
    ReminderLedger.schedule_future(assignment.id, user.id, assignment.due_date, (2, 1), now=now)
    ReminderLedger.record_send(assignment.id, user.id, now=now)

    removed = ReminderLedger.invalidate_unsent(assignment.id)

    assert removed == 2
    remaining = Reminder.query.filter_by(assignment_id=assignment.id).all()
    assert len(remaining) == 1
    assert remaining[0].sent is True


def test_upcoming_for_user_lists_future_unsent_in_order(make_user, make_assignment, now):
    user = make_user()
    other = make_user()
    soon = make_assignment(user, now + timedelta(days=3), title="Soon")
    later = make_assignment(user, now + timedelta(days=10), title="Later")
    foreign = make_assignment(other, now + timedelta(days=3), title="Foreign")
    ReminderLedger.schedule_future(later.id, user.id, later.due_date, (7,), now=now)
    ReminderLedger.schedule_future(soon.id, user.id, soon.due_date, (1,), now=now)
    ReminderLedger.schedule_future(foreign.id, other.id, foreign.due_date, (1,), now=now)

    upcoming = ReminderLedger.upcoming_for_user(user.id, now=now)

    assert [r.assignment_id for r in upcoming] == [soon.id, later.id]
