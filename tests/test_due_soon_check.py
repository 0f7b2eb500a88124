import threading
import unittest
from unittest import mock

from sqlalchemy.exc import OperationalError

from helpers import AppTestCase

from boxbox import create_app
from boxbox.config import TestConfig
from boxbox.extensions import db, mail
from boxbox.models.admin_notification import AdminNotification, BORROW_DUE_SOON
from boxbox.models.notification_log import NotificationLog
from boxbox.repositories.borrow_repo import RecordRepo
from boxbox.services.admin_notification_service import AdminNotificationService
from boxbox.tasks import due_soon_check, scheduler
from boxbox.tasks.due_soon_check import run_due_soon_check


class ScheduledConfig(TestConfig):
    SCHEDULER_ENABLED = True


class DueSoonCheckTests(AppTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user(name="Alice")
        self.box = self.make_box(name="Camera kit", items=(("Camera", 1), ("Tripod", 1)))

    def test_due_tomorrow_mails_once_across_sweeps(self):
        record = self.make_record(self.user, self.box, days_ago=6, days_borrowed=7)

        with mail.record_messages() as outbox:
            first = run_due_soon_check(now=self.now)
            second = run_due_soon_check(now=self.now)

        self.assertEqual(first["mailed"], 1)
        self.assertEqual(second["mailed"], 0)
        self.assertEqual(len(outbox), 1)
        self.assertEqual(outbox[0].recipients, ["alice@example.com"])
        self.assertIn("Camera kit", outbox[0].subject)

        self.assertEqual(RecordRepo.get(record.id).due_soon_notified_at, self.now)

    def test_admin_notice_written_once(self):
        record = self.make_record(self.user, self.box, days_ago=6, days_borrowed=7)

        first = run_due_soon_check(now=self.now)
        second = run_due_soon_check(now=self.now)

        self.assertEqual(first["admin_notices"], 1)
        self.assertEqual(second["admin_notices"], 0)
        rows = AdminNotification.query.filter_by(type=BORROW_DUE_SOON).all()
        self.assertEqual([r.borrow_id for r in rows], [record.id])
        self.assertIsNone(rows[0].admin_id)

    def test_already_notified_record_still_gets_admin_notice(self):
        record = self.make_record(self.user, self.box, days_ago=6, days_borrowed=7, due_soon_notified_at=self.now)

        with mail.record_messages() as outbox:
            summary = run_due_soon_check(now=self.now)

        self.assertEqual(outbox, [])
        self.assertEqual(summary["mailed"], 0)
        self.assertEqual(summary["admin_notices"], 1)
        self.assertEqual(AdminNotification.query.filter_by(borrow_id=record.id).count(), 1)

    def test_only_days_left_one_triggers(self):
        self.make_record(self.user, self.box, item=self.box.items[0], days_ago=5, days_borrowed=7)   # 2 left
        self.make_record(self.user, self.box, item=self.box.items[1], days_ago=9, days_borrowed=7)   # overdue

        summary = run_due_soon_check(now=self.now)

        self.assertEqual(summary["checked"], 2)
        self.assertEqual(summary["due_soon"], 0)
        self.assertEqual(AdminNotification.query.count(), 0)

    def test_returned_records_skipped(self):
        self.make_record(self.user, self.box, days_ago=6, days_borrowed=7, status="returned", returned_at=self.now)

        summary = run_due_soon_check(now=self.now)

        self.assertEqual(summary["checked"], 0)
        self.assertEqual(summary["due_soon"], 0)

    def test_mail_is_logged(self):
        record = self.make_record(self.user, self.box, days_ago=6, days_borrowed=7)
        run_due_soon_check(now=self.now)

        log = NotificationLog.query.filter_by(record_id=record.id, type="due_soon_mail").one()
        self.assertTrue(log.success)
        self.assertEqual(log.email, "alice@example.com")

    def test_database_error_degrades_to_empty_summary(self):
        with mock.patch.object(RecordRepo, "list_active", side_effect=OperationalError("SELECT", {}, Exception("no table"))):
            summary = run_due_soon_check(now=self.now)
        self.assertEqual(summary, {"checked": 0, "due_soon": 0, "mailed": 0, "admin_notices": 0})

    def test_record_claimed_elsewhere_is_not_mailed(self):
        self.make_record(self.user, self.box, days_ago=6, days_borrowed=7)

        # another sweep set the guard between our read and our claim
        with mock.patch.object(RecordRepo, "mark_due_soon_notified", return_value=False):
            with mail.record_messages() as outbox:
                summary = run_due_soon_check(now=self.now)

        self.assertEqual(outbox, [])
        self.assertEqual(summary["mailed"], 0)
        self.assertEqual(summary["admin_notices"], 1)

    def test_guard_is_claimed_once(self):
        record = self.make_record(self.user, self.box, days_ago=6, days_borrowed=7)
        self.assertTrue(RecordRepo.mark_due_soon_notified(record.id, self.now))
        self.assertFalse(RecordRepo.mark_due_soon_notified(record.id, self.now))

    def test_guard_survives_failure_after_mail(self):
        record = self.make_record(self.user, self.box, days_ago=6, days_borrowed=7)

        error = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with mock.patch.object(AdminNotificationService, "add_if_absent", side_effect=error):
            with mail.record_messages() as outbox:
                summary = run_due_soon_check(now=self.now)
        self.assertEqual(len(outbox), 1)
        self.assertEqual(summary["mailed"], 0)

        db.session.expire_all()
        self.assertEqual(RecordRepo.get(record.id).due_soon_notified_at, self.now)

        with mail.record_messages() as outbox:
            run_due_soon_check(now=self.now)
        self.assertEqual(outbox, [])

    def test_sweeps_do_not_overlap(self):
        self.make_record(self.user, self.box, days_ago=6, days_borrowed=7)
        results = []

        def worker():
            with self.app.app_context():
                results.append(run_due_soon_check(now=self.now))

        with due_soon_check._sweep_lock:
            t = threading.Thread(target=worker)
            t.start()
            t.join(0.2)
            self.assertTrue(t.is_alive())
            self.assertEqual(results, [])
        t.join(5)

        self.assertEqual(results[0]["mailed"], 1)


class SchedulerStartTests(unittest.TestCase):
    def setUp(self):
        self.app = create_app(ScheduledConfig)

    def test_cli_commands_do_not_start_the_scheduler(self):
        with mock.patch.object(scheduler, "start_scheduler") as start:
            result = self.app.test_cli_runner().invoke(args=["init-db"])
        self.assertEqual(result.exit_code, 0, result.output)
        start.assert_not_called()

    def test_first_request_starts_the_scheduler(self):
        with mock.patch.object(scheduler, "start_scheduler") as start:
            self.app.test_client().get("/health")
        start.assert_called_once_with(self.app)
