from boxbox.extensions import db
from boxbox.utils.clock import utcnow

STATUS_BORROWING = "borrowing"
STATUS_PENDING_RETURN = "pendingReturn"
STATUS_RETURNED = "returned"

RECORD_STATUSES = (STATUS_BORROWING, STATUS_PENDING_RETURN, STATUS_RETURNED)


class BorrowRecord(db.Model):
    __tablename__ = "borrow_records"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    box_id = db.Column(db.Integer, db.ForeignKey("boxes.id", ondelete="SET NULL"), nullable=True, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id", ondelete="SET NULL"), nullable=True, index=True)

    status = db.Column(db.String(20), nullable=False, default=STATUS_BORROWING)  # borrowing/pendingReturn/returned
    days_borrowed = db.Column(db.Integer, nullable=False)
    borrowed_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    return_request_date = db.Column(db.DateTime, nullable=True)
    returned_at = db.Column(db.DateTime, nullable=True)
    proof_image_url = db.Column(db.String(500), nullable=True)
    admin_note = db.Column(db.String(500), nullable=True)

    # due-soon mail guard
    due_soon_notified_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", backref="records")
    box = db.relationship("Box")
    item = db.relationship("Item")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "user_email": self.user.email if self.user else None,
            "box_id": self.box_id,
            "box_name": self.box.name if self.box else None,
            "item_id": self.item_id,
            "item_name": self.item.name if self.item else None,
            "status": self.status,
            "days_borrowed": self.days_borrowed,
            "borrowed_at": self.borrowed_at.isoformat() if self.borrowed_at else None,
            "return_request_date": self.return_request_date.isoformat() if self.return_request_date else None,
            "returned_at": self.returned_at.isoformat() if self.returned_at else None,
            "proof_image_url": self.proof_image_url,
            "admin_note": self.admin_note,
            "due_soon_notified_at": self.due_soon_notified_at.isoformat() if self.due_soon_notified_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
