# boxbox/services/mail_service.py
from __future__ import annotations

from flask import current_app
from flask_mail import Message

from boxbox.extensions import mail
from boxbox.models.notification_log import NotificationLog
from boxbox.repositories.notification_repo import NotificationRepo
from boxbox.services import due_status
from boxbox.utils.clock import utcnow

SUBJECT_PREFIX = "[BoxBox]"


class MailService:
    @staticmethod
    def send_email(to_email: str, subject: str, body: str) -> tuple[bool, str | None]:
        """
        return: (success, error_text)
        """
        current_app.logger.info(f"[MailService] To: {to_email} | Subject: {subject}")
        try:
            msg = Message(subject=subject, recipients=[to_email], body=body)
            mail.send(msg)
            return True, None
        except Exception as e:
            current_app.logger.warning(f"[MailService] Mail could not be sent: {e}")
            return False, str(e)

    @staticmethod
    def log_notification(
        record_id: int | None,
        notif_type: str,
        to_email: str | None,
        message: str,
        success: bool,
        error: str | None = None,
    ) -> NotificationLog:
        # no commit here: the calling workflow owns the transaction
        row = NotificationLog(
            record_id=record_id,
            type=notif_type,
            email=to_email,
            message=message[:1000] if message else message,
            success=bool(success),
            error_message=error,
            sent_at=utcnow(),
        )
        return NotificationRepo.log(row)

    @staticmethod
    def _send_and_log(record_id, notif_type, user, subject, body) -> bool:
        to_email = getattr(user, "email", None) if user else None
        if not to_email:
            MailService.log_notification(
                record_id=record_id,
                notif_type=notif_type,
                to_email=None,
                message="User email not found",
                success=False,
                error="missing_email",
            )
            return False

        ok, err = MailService.send_email(to_email, subject, body)
        MailService.log_notification(
            record_id=record_id,
            notif_type=notif_type,
            to_email=to_email,
            message=subject if ok else "Mail could not be sent",
            success=ok,
            error=err,
        )
        return ok

    @staticmethod
    def send_borrow_created_mail(user, box, item_count: int, days: int, record_id=None) -> bool:
        box_name = box.name if box else "Unknown box"
        subject = f"{SUBJECT_PREFIX} Borrowed: {box_name}"
        body = (
            f"Dear {user.name},\n\n"
            f"You borrowed the box \"{box_name}\".\n"
            f"Items: {item_count}\n"
            f"Duration: {days} days\n"
            f"Borrowed at: {utcnow():%Y-%m-%d %H:%M} UTC\n"
        )
        return MailService._send_and_log(record_id, "borrow_created_mail", user, subject, body)

    @staticmethod
    def send_due_soon_mail(record) -> bool:
        user = getattr(record, "user", None)
        box_name = record.box.name if getattr(record, "box", None) else "item"
        due = due_status.due_date(record.borrowed_at, record.days_borrowed)

        subject = f"{SUBJECT_PREFIX} Reminder: \"{box_name}\" is due soon"
        body = (
            f"Dear {getattr(user, 'name', 'user')},\n\n"
            f"Your loan \"{box_name}\" is due on {due:%Y-%m-%d} (in about 1 day).\n"
            f"Please get ready to return it on time.\n"
        )
        return MailService._send_and_log(record.id, "due_soon_mail", user, subject, body)

    @staticmethod
    def send_return_decision_mail(record, approved: bool) -> bool:
        user = record.user
        item_name = record.item.name if record.item else "item"

        if approved:
            if not user.notify_on_return:
                return False
            subject = f"{SUBJECT_PREFIX} Return approved: {item_name}"
            body = (
                f"Dear {user.name},\n\n"
                f"Your return request for \"{item_name}\" has been approved.\n"
            )
            return MailService._send_and_log(record.id, "return_approved_mail", user, subject, body)

        if not user.notify_on_rejected:
            return False
        subject = f"{SUBJECT_PREFIX} Return not approved: {item_name}"
        body = (
            f"Dear {user.name},\n\n"
            f"Your return request for \"{item_name}\" was not approved.\n"
            f"Reason: {record.admin_note or '-'}\n"
        )
        return MailService._send_and_log(record.id, "return_rejected_mail", user, subject, body)

    @staticmethod
    def send_user_message(user, subject: str, body: str) -> bool:
        return MailService._send_and_log(None, "admin_message", user, subject, body)
