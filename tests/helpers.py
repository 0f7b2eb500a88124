import unittest
from datetime import timedelta

from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash

from boxbox import create_app
from boxbox.config import TestConfig
from boxbox.extensions import db
from boxbox.models.borrow import BorrowRecord, STATUS_BORROWING
from boxbox.models.box import Box, Item, ITEM_AVAILABLE, ITEM_BORROWING
from boxbox.models.user import User
from boxbox.utils.clock import utcnow


class AppTestCase(unittest.TestCase):
    config = TestConfig

    def setUp(self):
        self.app = create_app(self.config)
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()
        self.client = self.app.test_client()
        self.now = utcnow().replace(microsecond=0)

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    # --- fixtures ---

    def make_user(self, name="User", email=None, role="user", password="password", **prefs):
        user = User(
            name=name,
            email=email or f"{name.lower().replace(' ', '.')}@example.com",
            phone="0800000000",
            password_hash=generate_password_hash(password),
            role=role,
            **prefs,
        )
        db.session.add(user)
        db.session.commit()
        return user

    def make_admin(self, name="Admin", email="admin@example.com"):
        return self.make_user(name=name, email=email, role="admin")

    def make_box(self, name="Toolbox", items=(("Screwdriver", 2),)):
        box = Box(name=name, box_type="tools")
        for item_name, qty in items:
            for _ in range(qty):
                box.items.append(Item(name=item_name, status=ITEM_AVAILABLE))
        db.session.add(box)
        db.session.commit()
        return box

    def make_record(self, user, box, item=None, days_ago=0, days_borrowed=7, status=STATUS_BORROWING, **fields):
        item = item or box.items[0]
        item.status = ITEM_BORROWING
        borrowed_at = self.now - timedelta(days=days_ago)
        record = BorrowRecord(
            user_id=user.id,
            box_id=box.id,
            item_id=item.id,
            status=status,
            days_borrowed=days_borrowed,
            borrowed_at=borrowed_at,
            created_at=borrowed_at,
            updated_at=fields.pop("updated_at", borrowed_at),
            **fields,
        )
        db.session.add(record)
        db.session.commit()
        return record

    def auth_headers(self, user):
        token = create_access_token(identity=str(user.id), additional_claims={"role": user.role, "name": user.name})
        return {"Authorization": f"Bearer {token}"}
