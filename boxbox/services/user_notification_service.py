from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from boxbox.models.borrow import STATUS_BORROWING
from boxbox.repositories.borrow_repo import RecordRepo
from boxbox.repositories.box_repo import BoxRepo
from boxbox.services import due_status
from boxbox.utils.clock import utcnow

NOTICE_OVERDUE = "OVERDUE"
NOTICE_DUE_SOON = "DUE_SOON"
NOTICE_RETURN_REJECTED = "RETURN_REJECTED"

REJECTED_MESSAGE = "Your latest return request was not approved"


@dataclass
class UserNotice:
    id: str
    record_id: int
    box_id: int
    title: str
    message: str
    type: str
    days_left: int | None = None
    is_read: bool = False

    def to_dict(self):
        return asdict(self)


_EPOCH = datetime(1970, 1, 1)


def _epoch_ms(dt) -> int:
    return (dt - _EPOCH) // timedelta(milliseconds=1) if dt else 0


def _rejected_notice(box, box_records):
    rejected = [r for r in box_records if r.status == STATUS_BORROWING and r.admin_note]
    if not rejected:
        return None
    latest = max(rejected, key=lambda r: (r.updated_at or r.created_at, r.id))
    return UserNotice(
        id=f"rejected-{latest.id}-{_epoch_ms(latest.updated_at)}",
        record_id=latest.id,
        box_id=box.id,
        title=box.name,
        message=REJECTED_MESSAGE,
        type=NOTICE_RETURN_REJECTED,
    )


def _due_notice(box, box_records, now):
    worst = None
    worst_key = None
    for r in box_records:
        if not due_status.should_show_due_notification(r.borrowed_at, r.days_borrowed, r.status, now):
            continue
        status = due_status.classify(r.borrowed_at, r.days_borrowed, now)
        # overdue first, then fewest days left; first record wins a tie
        key = (0 if status.is_overdue else 1, status.days_left)
        if worst_key is None or key < worst_key:
            worst, worst_key = (r, status), key

    if worst is None:
        return None

    record, status = worst
    return UserNotice(
        id=f"due-{record.id}",
        record_id=record.id,
        box_id=box.id,
        title=box.name,
        message=status.label(),
        type=NOTICE_OVERDUE if status.is_overdue else NOTICE_DUE_SOON,
        days_left=status.days_left,
    )


def build_user_notifications(user_id, records, boxes, now=None):
    """
    Derives the transient notices for one user: per box at most one
    RETURN_REJECTED notice and at most one DUE_SOON/OVERDUE notice.

    Records whose box no longer exists are dropped.
    """
    now = now or utcnow()
    boxes_by_id = {b.id: b for b in boxes}

    grouped = OrderedDict()
    for r in records:
        if r.user_id != user_id:
            continue
        if r.box_id not in boxes_by_id or r.borrowed_at is None or r.days_borrowed is None:
            continue
        grouped.setdefault(r.box_id, []).append(r)

    notices = []
    for box_id, box_records in grouped.items():
        box = boxes_by_id[box_id]

        rejected = _rejected_notice(box, box_records)
        if rejected:
            notices.append(rejected)

        due = _due_notice(box, box_records, now)
        if due:
            notices.append(due)

    return notices


class UserNotificationService:
    @staticmethod
    def for_user(user_id: int, now=None):
        try:
            records = RecordRepo.list_by_user(user_id)
            boxes = BoxRepo.list_all()
        except SQLAlchemyError as e:
            current_app.logger.exception(f"[UserNotif] Records could not be loaded: {e}")
            return []
        return build_user_notifications(user_id, records, boxes, now=now)
