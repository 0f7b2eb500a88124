from boxbox.extensions import db
from boxbox.utils.clock import utcnow

BORROW_CREATED = "BORROW_CREATED"
RETURN_REQUESTED = "RETURN_REQUESTED"
RETURN_REJECTED_NEW_REQUEST = "RETURN_REJECTED_NEW_REQUEST"
BORROW_DUE_SOON = "BORROW_DUE_SOON"

ADMIN_NOTIFICATION_TYPES = (BORROW_CREATED, RETURN_REQUESTED, RETURN_REJECTED_NEW_REQUEST, BORROW_DUE_SOON)

BROADCAST_KEY = 0


def admin_key_for(admin_id) -> int:
    return BROADCAST_KEY if admin_id is None else int(admin_id)


class AdminNotification(db.Model):
    __tablename__ = "admin_notifications"
    __table_args__ = (
        db.UniqueConstraint("type", "borrow_id", "admin_key", name="uq_admin_notification_key"),
    )

    id = db.Column(db.Integer, primary_key=True)

    # NULL: every admin sees it
    admin_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    # admin_id or 0; the unique key needs a non-NULL column
    admin_key = db.Column(db.Integer, nullable=False, default=BROADCAST_KEY)
    borrow_id = db.Column(db.Integer, nullable=False, index=True)

    type = db.Column(db.String(40), nullable=False)
    title = db.Column(db.String(200), nullable=False, default="")
    message = db.Column(db.String(500), nullable=False, default="")
    is_read = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "admin_id": self.admin_id,
            "borrow_id": self.borrow_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "is_read": bool(self.is_read),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
