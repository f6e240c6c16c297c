# nocram/routes/reminders.py
from functools import wraps

from flask import Blueprint, current_app, jsonify, request
from flask_security import current_user

from nocram.services.preference_service import PreferenceError, PreferenceService
from nocram.services.reminder_ledger import ReminderLedger

reminders_bp = Blueprint('reminders', __name__, url_prefix='/api/reminders')


def api_login_required(view_func):
    """Simple auth guard for API routes (session or token)."""
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({"error": "Authentication required"}), 401
        return view_func(*args, **kwargs)
    return wrapper


@reminders_bp.route('/trigger', methods=['POST'])
@api_login_required
def trigger_reminder_check():
    """Run the deadline scan now. Only success or failure is reported."""
    current_app.logger.info(f"Manual reminder check requested by user {current_user.id}")
    reminder_scheduler = current_app.extensions['reminder_scheduler']
    if reminder_scheduler.trigger_now():
        return jsonify({
            'success': True,
            'message': 'Manual reminder check completed. Check server logs for details.'
        })
    return jsonify({'success': False, 'error': 'Failed to trigger reminder check'}), 500


@reminders_bp.route('/preferences', methods=['GET'])
@api_login_required
def get_preferences():
    pref = PreferenceService.get_or_create(current_user.id)
    return jsonify(pref.to_dict())


@reminders_bp.route('/preferences', methods=['PUT'])
@api_login_required
def update_preferences():
    data = request.get_json(silent=True) or {}
    try:
        pref = PreferenceService.save_preferences(
            current_user.id,
            email_enabled=data.get('email_enabled'),
            reminder_days=data.get('reminder_days'),
        )
    except PreferenceError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify(pref.to_dict())


@reminders_bp.route('/upcoming', methods=['GET'])
@api_login_required
def upcoming_reminders():
    reminders = ReminderLedger.upcoming_for_user(current_user.id)
    return jsonify({'reminders': [r.to_dict() for r in reminders]})
