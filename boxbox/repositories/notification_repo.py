from boxbox.models.notification_log import NotificationLog
from boxbox.extensions import db


class NotificationRepo:
    @staticmethod
    def list_recent(limit: int = 200):
        return NotificationLog.query.order_by(NotificationLog.id.desc()).limit(limit).all()

    @staticmethod
    def log(entry: NotificationLog):
        db.session.add(entry)
        return entry
