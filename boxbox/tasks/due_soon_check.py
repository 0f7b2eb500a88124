# boxbox/tasks/due_soon_check.py
import threading

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from boxbox.events import notify_records_changed
from boxbox.extensions import db
from boxbox.models.admin_notification import BORROW_DUE_SOON
from boxbox.repositories.borrow_repo import RecordRepo
from boxbox.services import due_status
from boxbox.services.admin_notification_service import AdminNotificationService
from boxbox.services.mail_service import MailService
from boxbox.utils.clock import utcnow

DUE_SOON_DAYS_LEFT = 1

# one sweep at a time per process (scheduler thread, admin endpoint, CLI)
_sweep_lock = threading.Lock()


def _empty_summary() -> dict:
    return {"checked": 0, "due_soon": 0, "mailed": 0, "admin_notices": 0}


def run_due_soon_check(now=None) -> dict:
    """
    Loans due tomorrow (days_left == 1):
    - user mail at most once per record: the due_soon_notified_at guard is
      claimed and committed before the mail goes out
    - BORROW_DUE_SOON admin notice every run; the feed dedups it
    Must run inside an app context. DB errors are logged, never raised.
    """
    with _sweep_lock:
        return _sweep(now or utcnow())


def _sweep(now) -> dict:
    summary = _empty_summary()

    try:
        records = RecordRepo.list_active()
        summary["checked"] = len(records)

        for r in records:
            if r.borrowed_at is None or r.days_borrowed is None:
                continue
            if due_status.days_left(r.borrowed_at, r.days_borrowed, now) != DUE_SOON_DAYS_LEFT:
                continue
            summary["due_soon"] += 1

            if r.user is not None and r.due_soon_notified_at is None:
                # another process may have claimed it since the read above
                if RecordRepo.mark_due_soon_notified(r.id, now):
                    RecordRepo.commit()
                    MailService.send_due_soon_mail(r)
                    RecordRepo.commit()
                    summary["mailed"] += 1

            box_name = r.box.name if r.box else "Due soon"
            if AdminNotificationService.add_if_absent(
                BORROW_DUE_SOON,
                r.id,
                title=box_name,
                message="This loan is due in 1 day",
            ):
                summary["admin_notices"] += 1

    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception(f"[due_soon] Error: {e}")
        return _empty_summary()

    if summary["mailed"]:
        notify_records_changed(run_due_soon_check)

    current_app.logger.info(
        f"[due_soon] checked={summary['checked']} due_soon={summary['due_soon']} "
        f"mailed={summary['mailed']} admin_notices={summary['admin_notices']}"
    )
    return summary


def run_due_soon_check_job(app):
    with app.app_context():
        return run_due_soon_check()
