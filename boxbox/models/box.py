from boxbox.extensions import db
from boxbox.utils.clock import utcnow

ITEM_AVAILABLE = "available"
ITEM_BORROWING = "borrowing"
ITEM_PENDING_RETURN = "pendingReturn"


class Box(db.Model):
    __tablename__ = "boxes"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    box_type = db.Column(db.String(100), nullable=True)
    cover_image_url = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship("Item", backref="box", cascade="all, delete-orphan", lazy="select", order_by="Item.id")


class Item(db.Model):
    __tablename__ = "items"

    id = db.Column(db.Integer, primary_key=True)
    box_id = db.Column(db.Integer, db.ForeignKey("boxes.id"), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    image_url = db.Column(db.String(500), nullable=True)

    status = db.Column(db.String(20), nullable=False, default=ITEM_AVAILABLE)  # available/borrowing/pendingReturn
    updated_by = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "box_id": self.box_id,
            "name": self.name,
            "image_url": self.image_url,
            "status": self.status,
        }
