from sqlalchemy import case, func

from boxbox.models.box import Box, Item, ITEM_AVAILABLE
from boxbox.extensions import db


class BoxRepo:
    @staticmethod
    def list_all():
        return Box.query.order_by(Box.id.asc()).all()

    @staticmethod
    def get(box_id: int):
        return db.session.get(Box, box_id)

    @staticmethod
    def item_counts():
        """{box_id: (item_count, available_count)} in one query."""
        rows = (
            db.session.query(
                Item.box_id,
                func.count(Item.id),
                func.sum(case((Item.status == ITEM_AVAILABLE, 1), else_=0)),
            )
            .group_by(Item.box_id)
            .all()
        )
        return {box_id: (int(total or 0), int(available or 0)) for box_id, total, available in rows}

    @staticmethod
    def add(box: Box):
        db.session.add(box)
        return box

    @staticmethod
    def delete(box: Box):
        db.session.delete(box)

    @staticmethod
    def commit():
        db.session.commit()


class ItemRepo:
    @staticmethod
    def get(item_id: int):
        return db.session.get(Item, item_id)

    @staticmethod
    def list_by_box(box_id: int):
        return Item.query.filter_by(box_id=box_id).order_by(Item.id.asc()).all()

    @staticmethod
    def list_available(box_id: int):
        return (
            Item.query
            .filter_by(box_id=box_id, status=ITEM_AVAILABLE)
            .order_by(Item.id.asc())
            .all()
        )
