from __future__ import annotations

from flask import current_app

from boxbox.events import notify_records_changed
from boxbox.exceptions import BoxNotFound, RecordNotFound
from boxbox.models.admin_notification import (
    BORROW_CREATED,
    RETURN_REQUESTED,
    RETURN_REJECTED_NEW_REQUEST,
)
from boxbox.models.borrow import (
    BorrowRecord,
    STATUS_BORROWING,
    STATUS_PENDING_RETURN,
    STATUS_RETURNED,
)
from boxbox.models.box import ITEM_AVAILABLE, ITEM_BORROWING, ITEM_PENDING_RETURN
from boxbox.repositories.borrow_repo import RecordRepo
from boxbox.repositories.box_repo import BoxRepo, ItemRepo
from boxbox.repositories.admin_notification_repo import AdminNotificationRepo
from boxbox.services.admin_notification_service import AdminNotificationService
from boxbox.services.mail_service import MailService
from boxbox.utils.clock import utcnow

DEFAULT_REJECT_NOTE = "Rejected by admin"


class BorrowService:
    @staticmethod
    def _get_owned_record(record_id: int, user):
        record = RecordRepo.get(record_id)
        if not record:
            raise RecordNotFound("Borrow record not found")
        # non-admins may only touch their own records
        if not user.is_admin and record.user_id != user.id:
            raise PermissionError("This record does not belong to you")
        return record

    @staticmethod
    def _set_item_status(item_id, status: str, user_id=None, now=None):
        item = ItemRepo.get(item_id) if item_id else None
        if item:
            item.status = status
            item.updated_at = now or utcnow()
            if user_id is not None:
                item.updated_by = user_id
        return item

    @staticmethod
    def borrow_box(user, box_id: int, days: int, proof_url: str | None = None, now=None):
        """
        Every available item of the box becomes one borrowing record.
        Returns the new records; empty list when nothing is available.
        """
        now = now or utcnow()

        if days is None or int(days) <= 0:
            raise ValueError("days must be positive")
        days = int(days)

        box = BoxRepo.get(box_id)
        if not box:
            raise BoxNotFound("Box not found")

        available = ItemRepo.list_available(box_id)
        if not available:
            return []

        records = []
        for item in available:
            item.status = ITEM_BORROWING
            item.updated_at = now
            item.updated_by = user.id

            record = BorrowRecord(
                user_id=user.id,
                box_id=box_id,
                item_id=item.id,
                status=STATUS_BORROWING,
                days_borrowed=days,
                borrowed_at=now,
                proof_image_url=proof_url,
                created_at=now,
                updated_at=now,
            )
            RecordRepo.add(record)
            records.append(record)

        # single commit point
        RecordRepo.commit()

        # one notice for the whole box, keyed by the first record
        AdminNotificationService.add_if_absent(
            BORROW_CREATED,
            records[0].id,
            title=box.name,
            message=f"{user.name} borrowed a box",
        )

        if user.notify_on_borrow:
            MailService.send_borrow_created_mail(user, box, len(records), days, record_id=records[0].id)
            RecordRepo.commit()

        current_app.logger.info(f"[borrow] user={user.id} box={box_id} items={len(records)} days={days}")
        notify_records_changed(BorrowService)
        return records

    @staticmethod
    def _mark_pending(record, proof_url, user_id, now):
        record.status = STATUS_PENDING_RETURN
        record.return_request_date = now
        record.proof_image_url = proof_url
        record.admin_note = None
        record.updated_at = now
        BorrowService._set_item_status(record.item_id, ITEM_PENDING_RETURN, user_id, now)

    @staticmethod
    def request_return(record_id: int, proof_url: str, user, now=None):
        now = now or utcnow()
        if not proof_url:
            raise ValueError("proof_url is required")

        record = BorrowService._get_owned_record(record_id, user)
        if record.status == STATUS_RETURNED:
            raise ValueError("This record is already returned")

        # was it rejected before? decided before the note is cleared
        was_rejected = bool(record.admin_note)

        BorrowService._mark_pending(record, proof_url, user.id, now)
        RecordRepo.commit()

        box_name = record.box.name if record.box else "Return request"
        owner_name = record.user.name if record.user else "User"
        if was_rejected:
            AdminNotificationService.add_if_absent(
                RETURN_REJECTED_NEW_REQUEST,
                record.id,
                title=box_name,
                message=f"{owner_name} sent a new return request after a rejection",
            )
        else:
            AdminNotificationService.add_if_absent(
                RETURN_REQUESTED,
                record.id,
                title=box_name,
                message=f"{owner_name} requested a return",
            )

        notify_records_changed(BorrowService)
        return record

    @staticmethod
    def request_return_batch(record_ids, proof_url: str, user, now=None):
        now = now or utcnow()
        if not proof_url:
            raise ValueError("proof_url is required")

        records = RecordRepo.get_many(record_ids)
        if not records:
            raise RecordNotFound("Borrow record not found")

        for r in records:
            if not user.is_admin and r.user_id != user.id:
                raise PermissionError("This record does not belong to you")
            if r.status == STATUS_RETURNED:
                raise ValueError(f"Record {r.id} is already returned")

        first = records[0]
        was_rejected = any(bool(r.admin_note) for r in records)

        for r in records:
            BorrowService._mark_pending(r, proof_url, user.id, now)
        RecordRepo.commit()

        owner_name = first.user.name if first.user else "User"
        if was_rejected:
            notif_type = RETURN_REJECTED_NEW_REQUEST
            message = f"{owner_name} sent a new return request after a rejection"
        else:
            notif_type = RETURN_REQUESTED
            message = f"{owner_name} requested a return"

        AdminNotificationService.add_if_absent(
            notif_type,
            first.id,
            title=first.box.name if first.box else "Return request",
            message=message,
        )

        notify_records_changed(BorrowService)
        return records

    @staticmethod
    def admin_decide_return(record_id: int, approved: bool, note: str | None = None, admin=None, now=None):
        now = now or utcnow()

        record = RecordRepo.get(record_id)
        if not record:
            raise RecordNotFound("Borrow record not found")
        if record.status == STATUS_RETURNED:
            raise ValueError("This record is already returned")

        admin_id = admin.id if admin else None
        if approved:
            record.status = STATUS_RETURNED
            record.returned_at = now
            record.admin_note = None
            BorrowService._set_item_status(record.item_id, ITEM_AVAILABLE, admin_id, now)
        else:
            # user still holds the item
            record.status = STATUS_BORROWING
            record.return_request_date = None
            record.admin_note = (note or "").strip() or DEFAULT_REJECT_NOTE
            BorrowService._set_item_status(record.item_id, ITEM_BORROWING, admin_id, now)
        record.updated_at = now

        if record.user:
            MailService.send_return_decision_mail(record, approved)

        RecordRepo.commit()
        notify_records_changed(BorrowService)
        return record

    @staticmethod
    def admin_batch_update_status(record_ids, new_status: str, admin=None, now=None):
        """Admin override: force records to 'returned' or back to 'borrowing'."""
        now = now or utcnow()
        if new_status not in (STATUS_RETURNED, STATUS_BORROWING):
            raise ValueError("status must be 'returned' or 'borrowing'")

        admin_id = admin.id if admin else None
        records = RecordRepo.get_many(record_ids)
        for r in records:
            if new_status == STATUS_RETURNED:
                r.status = STATUS_RETURNED
                if not r.returned_at:
                    r.returned_at = now
                r.return_request_date = None
                r.admin_note = None
                BorrowService._set_item_status(r.item_id, ITEM_AVAILABLE, admin_id, now)
            else:
                r.status = STATUS_BORROWING
                r.returned_at = None
                r.return_request_date = None
                BorrowService._set_item_status(r.item_id, ITEM_BORROWING, admin_id, now)
            r.updated_at = now

        RecordRepo.commit()
        current_app.logger.info(f"[borrow] batch status={new_status} records={[r.id for r in records]}")
        notify_records_changed(BorrowService)
        return records

    @staticmethod
    def admin_delete_records(record_ids) -> int:
        records = RecordRepo.get_many(record_ids)
        if not records:
            return 0

        for r in records:
            # active loan: free the item
            if r.status in (STATUS_BORROWING, STATUS_PENDING_RETURN):
                BorrowService._set_item_status(r.item_id, ITEM_AVAILABLE)

        ids = [r.id for r in records]
        AdminNotificationRepo.delete_for_borrows(ids)
        RecordRepo.delete_many(records)
        RecordRepo.commit()

        current_app.logger.info(f"[borrow] deleted records={ids}")
        notify_records_changed(BorrowService)
        return len(ids)
