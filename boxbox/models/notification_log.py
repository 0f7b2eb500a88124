# boxbox/models/notification_log.py
from boxbox.extensions import db
from boxbox.utils.clock import utcnow


class NotificationLog(db.Model):
    __tablename__ = "notification_logs"

    id = db.Column(db.Integer, primary_key=True)

    # NULL for mails not tied to a record (admin messages)
    record_id = db.Column(db.Integer, nullable=True, index=True)

    # borrow_created_mail, due_soon_mail, return_approved_mail, return_rejected_mail, admin_message
    type = db.Column(db.String(50), nullable=False)

    email = db.Column(db.String(255), nullable=True)
    message = db.Column(db.String(1000), nullable=True)

    sent_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    success = db.Column(db.Boolean, nullable=False, default=True)
    error_message = db.Column(db.String(500), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "record_id": self.record_id,
            "type": self.type,
            "email": self.email,
            "message": self.message,
            "success": bool(self.success),
            "error_message": self.error_message,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }
