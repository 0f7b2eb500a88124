from unittest import mock

from helpers import AppTestCase

from boxbox.exceptions import NotFound
from boxbox.models.admin_notification import (
    AdminNotification,
    BORROW_CREATED,
    BORROW_DUE_SOON,
    RETURN_REQUESTED,
)
from boxbox.repositories.admin_notification_repo import AdminNotificationRepo
from boxbox.services.admin_notification_service import AdminNotificationService


class AdminNotificationTests(AppTestCase):
    def setUp(self):
        super().setUp()
        self.admin = self.make_admin()
        self.other_admin = self.make_admin(name="Second", email="second@example.com")

    def test_same_triple_twice_stores_one_row(self):
        first = AdminNotificationService.add_if_absent(BORROW_CREATED, 42, title="Box", message="m")
        second = AdminNotificationService.add_if_absent(BORROW_CREATED, 42, title="Box", message="m")
        self.assertTrue(first)
        self.assertFalse(second)
        self.assertEqual(AdminNotification.query.count(), 1)

    def test_racing_broadcast_insert_rejected_by_unique_key(self):
        self.assertTrue(AdminNotificationService.add_if_absent(BORROW_DUE_SOON, 7))

        # a second writer whose lookup ran before the first commit
        with mock.patch.object(AdminNotificationRepo, "find_by_key", return_value=None):
            written = AdminNotificationService.add_if_absent(BORROW_DUE_SOON, 7)

        self.assertFalse(written)
        self.assertEqual(AdminNotification.query.count(), 1)

    def test_racing_targeted_insert_rejected_by_unique_key(self):
        AdminNotificationService.add_if_absent(BORROW_DUE_SOON, 7, admin_id=self.admin.id)
        with mock.patch.object(AdminNotificationRepo, "find_by_key", return_value=None):
            written = AdminNotificationService.add_if_absent(BORROW_DUE_SOON, 7, admin_id=self.admin.id)
        self.assertFalse(written)
        self.assertEqual(AdminNotification.query.count(), 1)

    def test_key_parts_are_distinct(self):
        AdminNotificationService.add_if_absent(BORROW_CREATED, 1)
        AdminNotificationService.add_if_absent(RETURN_REQUESTED, 1)
        AdminNotificationService.add_if_absent(BORROW_CREATED, 2)
        AdminNotificationService.add_if_absent(BORROW_CREATED, 1, admin_id=self.admin.id)
        self.assertEqual(AdminNotification.query.count(), 4)

    def test_unknown_type_rejected(self):
        with self.assertRaises(ValueError):
            AdminNotificationService.add_if_absent("SOMETHING_ELSE", 1)

    def test_feed_contains_broadcast_and_own_rows_only(self):
        AdminNotificationService.add_if_absent(BORROW_CREATED, 1)
        AdminNotificationService.add_if_absent(RETURN_REQUESTED, 2, admin_id=self.admin.id)
        AdminNotificationService.add_if_absent(RETURN_REQUESTED, 3, admin_id=self.other_admin.id)

        feed = AdminNotificationService.list_for_admin(self.admin.id)
        self.assertEqual(sorted(n.borrow_id for n in feed), [1, 2])

    def test_mark_read_and_mark_all_read(self):
        AdminNotificationService.add_if_absent(BORROW_CREATED, 1)
        AdminNotificationService.add_if_absent(BORROW_CREATED, 2)
        feed = AdminNotificationService.list_for_admin(self.admin.id)

        n = AdminNotificationService.mark_read(feed[0].id, self.admin.id)
        self.assertTrue(n.is_read)

        updated = AdminNotificationService.mark_all_read(self.admin.id)
        self.assertEqual(updated, 1)
        self.assertTrue(all(x.is_read for x in AdminNotification.query.all()))

    def test_mark_read_of_foreign_row_is_not_found(self):
        AdminNotificationService.add_if_absent(BORROW_CREATED, 1, admin_id=self.other_admin.id)
        row = AdminNotification.query.first()
        with self.assertRaises(NotFound):
            AdminNotificationService.mark_read(row.id, self.admin.id)

    def test_clear_all_keeps_other_admins_rows(self):
        AdminNotificationService.add_if_absent(BORROW_CREATED, 1)
        AdminNotificationService.add_if_absent(BORROW_CREATED, 2, admin_id=self.other_admin.id)
        deleted = AdminNotificationService.clear_all(self.admin.id)
        self.assertEqual(deleted, 1)
        self.assertEqual(AdminNotification.query.count(), 1)
