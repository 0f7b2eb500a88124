from sqlalchemy import or_

from boxbox.models.admin_notification import AdminNotification, admin_key_for
from boxbox.extensions import db

class AdminNotificationRepo:
    @staticmethod
    def find_by_key(notif_type: str, borrow_id: int, admin_id):
        return AdminNotification.query.filter_by(
            type=notif_type,
            borrow_id=borrow_id,
            admin_key=admin_key_for(admin_id),
        ).first()

    @staticmethod
    def get(notification_id: int):
        return db.session.get(AdminNotification, notification_id)

    @staticmethod
    def list_all():
        return AdminNotification.query.order_by(AdminNotification.id.desc()).all()

    @staticmethod
    def list_for_admin(admin_id: int):
        return (
            AdminNotification.query
            .filter(or_(AdminNotification.admin_id.is_(None), AdminNotification.admin_id == admin_id))
            .order_by(AdminNotification.created_at.desc(), AdminNotification.id.desc())
            .all()
        )

    @staticmethod
    def add(notification: AdminNotification):
        db.session.add(notification)
        return notification

    @staticmethod
    def mark_all_read(admin_id: int) -> int:
        return (
            AdminNotification.query
            .filter(or_(AdminNotification.admin_id.is_(None), AdminNotification.admin_id == admin_id))
            .filter(AdminNotification.is_read.is_(False))
            .update({AdminNotification.is_read: True}, synchronize_session=False)
        )

    @staticmethod
    def delete_for_admin(admin_id: int) -> int:
        return (
            AdminNotification.query
            .filter(or_(AdminNotification.admin_id.is_(None), AdminNotification.admin_id == admin_id))
            .delete(synchronize_session=False)
        )

    @staticmethod
    def delete_for_borrows(borrow_ids) -> int:
        if not borrow_ids:
            return 0
        return (
            AdminNotification.query
            .filter(AdminNotification.borrow_id.in_(list(borrow_ids)))
            .delete(synchronize_session=False)
        )

    @staticmethod
    def commit():
        db.session.commit()
