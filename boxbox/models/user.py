from boxbox.extensions import db
from boxbox.utils.clock import utcnow


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(32), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="user")  # user/admin
    avatar_url = db.Column(db.String(500), nullable=True)

    # mail preferences
    notify_on_borrow = db.Column(db.Boolean, nullable=False, default=True)
    notify_on_return = db.Column(db.Boolean, nullable=False, default=True)
    notify_on_rejected = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "avatar_url": self.avatar_url,
            "notify_on_borrow": bool(self.notify_on_borrow),
            "notify_on_return": bool(self.notify_on_return),
            "notify_on_rejected": bool(self.notify_on_rejected),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
