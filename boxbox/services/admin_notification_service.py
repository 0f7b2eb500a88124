from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from boxbox.events import notify_admin_feed_changed
from boxbox.exceptions import NotFound
from boxbox.extensions import db
from boxbox.models.admin_notification import AdminNotification, ADMIN_NOTIFICATION_TYPES, admin_key_for
from boxbox.repositories.admin_notification_repo import AdminNotificationRepo


class AdminNotificationService:
    @staticmethod
    def add_if_absent(notif_type: str, borrow_id: int, title: str = "", message: str = "", admin_id=None) -> bool:
        """
        Dedup by (type, borrow_id, admin_id). Returns True when a row was
        written, False when the triple already existed.

        Commits on its own; callers commit their work first. The lookup
        covers the common case, the unique key on admin_key covers racing
        writers (two sweeps, several workers).
        """
        if notif_type not in ADMIN_NOTIFICATION_TYPES:
            raise ValueError(f"Unknown admin notification type: {notif_type}")

        if AdminNotificationRepo.find_by_key(notif_type, borrow_id, admin_id):
            current_app.logger.debug(f"[AdminNotif] Skipped duplicate: {notif_type} for borrow_id {borrow_id}")
            return False

        row = AdminNotification(
            admin_id=admin_id,
            admin_key=admin_key_for(admin_id),
            borrow_id=borrow_id,
            type=notif_type,
            title=title or "",
            message=message or "",
            is_read=False,
        )

        try:
            AdminNotificationRepo.add(row)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.debug(f"[AdminNotif] Duplicate rejected by DB: {notif_type} for borrow_id {borrow_id}")
            return False

        notify_admin_feed_changed(AdminNotificationService)
        return True

    @staticmethod
    def list_for_admin(admin_id: int):
        try:
            return AdminNotificationRepo.list_for_admin(admin_id)
        except SQLAlchemyError as e:
            current_app.logger.exception(f"[AdminNotif] Feed could not be loaded: {e}")
            return []

    @staticmethod
    def mark_read(notification_id: int, admin_id: int):
        n = AdminNotificationRepo.get(notification_id)
        if not n or (n.admin_id is not None and n.admin_id != admin_id):
            raise NotFound("Notification not found")
        if not n.is_read:
            n.is_read = True
            AdminNotificationRepo.commit()
            notify_admin_feed_changed(AdminNotificationService)
        return n

    @staticmethod
    def mark_all_read(admin_id: int) -> int:
        count = AdminNotificationRepo.mark_all_read(admin_id)
        AdminNotificationRepo.commit()
        if count:
            notify_admin_feed_changed(AdminNotificationService)
        return count

    @staticmethod
    def clear_all(admin_id: int) -> int:
        count = AdminNotificationRepo.delete_for_admin(admin_id)
        AdminNotificationRepo.commit()
        notify_admin_feed_changed(AdminNotificationService)
        return count
