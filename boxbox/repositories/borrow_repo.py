from datetime import datetime

from boxbox.models.borrow import BorrowRecord, STATUS_RETURNED
from boxbox.extensions import db


class RecordRepo:
    @staticmethod
    def get(record_id: int):
        return db.session.get(BorrowRecord, record_id)

    @staticmethod
    def get_many(record_ids):
        if not record_ids:
            return []
        return (
            BorrowRecord.query
            .filter(BorrowRecord.id.in_(list(record_ids)))
            .order_by(BorrowRecord.id.asc())
            .all()
        )

    @staticmethod
    def list_by_user(user_id: int):
        return BorrowRecord.query.filter_by(user_id=user_id).order_by(BorrowRecord.id.desc()).all()

    @staticmethod
    def list_all():
        return BorrowRecord.query.order_by(BorrowRecord.id.desc()).all()

    @staticmethod
    def list_active():
        return (
            BorrowRecord.query
            .filter(BorrowRecord.status != STATUS_RETURNED)
            .order_by(BorrowRecord.id.asc())
            .all()
        )

    @staticmethod
    def add(record: BorrowRecord):
        db.session.add(record)
        return record

    @staticmethod
    def delete_many(records):
        for r in records:
            db.session.delete(r)

    @staticmethod
    def mark_due_soon_notified(record_id: int, now: datetime) -> bool:
        """
        Sets the guard only if it is still empty. True means this caller
        won the record and owns the mail; the caller commits.
        """
        updated = (
            BorrowRecord.query
            .filter(BorrowRecord.id == record_id, BorrowRecord.due_soon_notified_at.is_(None))
            .update({BorrowRecord.due_soon_notified_at: now}, synchronize_session="fetch")
        )
        return updated == 1

    @staticmethod
    def commit():
        db.session.commit()
