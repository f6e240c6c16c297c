# nocram/services/email_service.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from flask import current_app, render_template
from flask_mail import Message

from nocram import mail

REMINDER_HTML_TEMPLATE = "email/assignment_reminder.html"
REMINDER_TEXT_TEMPLATE = "email/assignment_reminder.txt"


@dataclass
class SendResult:
    """Outcome of one send; transport errors are reported here instead of raised."""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class EmailService:
    @staticmethod
    def send(to: str, subject: str, body: str, html: Optional[str] = None) -> SendResult:
        try:
            msg = Message(subject=subject, recipients=[to], body=body, html=html)
            mail.send(msg)
        except Exception as e:  # noqa: BLE001
            current_app.logger.error(f"Failed to send email '{subject}' to {to}: {e}")
            return SendResult(success=False, error=str(e))

        current_app.logger.debug(f"Email '{subject}' sent to {to} ({msg.msgId})")
        return SendResult(success=True, message_id=msg.msgId)

    @staticmethod
    def send_assignment_reminder(to: str, subject: str, context: Dict) -> SendResult:
        ctx = dict(context, subject=subject)
        body = EmailService._render(REMINDER_TEXT_TEMPLATE, ctx)
        html = EmailService._render(REMINDER_HTML_TEMPLATE, ctx)
        if not body:
            # Plain-text fallback so the message is never empty
            body = f"{subject}\n\nDue: {ctx.get('due_date_display', '')}"
        return EmailService.send(to, subject, body, html=html)

    @staticmethod
    def _render(template: str, context: Dict) -> Optional[str]:
        try:
            return render_template(template, **context)
        except Exception as e:  # noqa: BLE001
            current_app.logger.warning(f"Could not render {template}: {e}")
            return None
