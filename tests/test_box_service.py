from helpers import AppTestCase

from boxbox.exceptions import BoxNotFound
from boxbox.extensions import db
from boxbox.models.box import Box, Item
from boxbox.repositories.borrow_repo import RecordRepo
from boxbox.services.box_service import BoxService


class BoxServiceTests(AppTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user(name="Alice")

    def names(self, box_id):
        return sorted((i.name, i.status) for i in BoxService.list_items(box_id))

    def test_create_expands_quantities(self):
        box = BoxService.create_box({
            "name": " Lab box ",
            "box_type": "lab",
            "items": [{"name": "Beaker", "qty": 3}, {"name": "Burner", "qty": 1}],
        })
        self.assertEqual(box.name, "Lab box")
        self.assertEqual(len(box.items), 4)

    def test_create_requires_name(self):
        with self.assertRaises(ValueError):
            BoxService.create_box({"name": "  "})
        with self.assertRaises(ValueError):
            BoxService.create_box({"name": "x", "items": [{"name": "", "qty": 1}]})

    def test_list_boxes_counts(self):
        box = self.make_box(items=(("Screwdriver", 3),))
        self.make_record(self.user, box)
        data = BoxService.list_boxes()
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]["item_count"], 3)
        self.assertEqual(data[0]["available_count"], 2)

    def test_shrinking_keeps_loaned_items(self):
        box = self.make_box(items=(("Screwdriver", 3),))
        self.make_record(self.user, box, item=box.items[1])

        BoxService.update_box(box.id, {"items": [{"name": "Screwdriver", "qty": 1}]})

        self.assertEqual(self.names(box.id), [("Screwdriver", "borrowing")])

    def test_growing_adds_available_items(self):
        box = self.make_box(items=(("Screwdriver", 1),))
        BoxService.update_box(box.id, {
            "name": "Bigger toolbox",
            "items": [{"name": "Screwdriver", "qty": 2}, {"name": "Hammer", "qty": 1}],
        })
        self.assertEqual(BoxService.get_box(box.id).name, "Bigger toolbox")
        self.assertEqual(self.names(box.id), [
            ("Hammer", "available"),
            ("Screwdriver", "available"),
            ("Screwdriver", "available"),
        ])

    def test_dropped_names_removed_unless_loaned(self):
        box = self.make_box(items=(("Screwdriver", 1), ("Hammer", 1)))
        hammer = [i for i in box.items if i.name == "Hammer"][0]
        self.make_record(self.user, box, item=hammer)

        BoxService.update_box(box.id, {"items": []})

        self.assertEqual(self.names(box.id), [("Hammer", "borrowing")])

    def test_update_without_items_leaves_them(self):
        box = self.make_box(items=(("Screwdriver", 2),))
        BoxService.update_box(box.id, {"box_type": "garden"})
        self.assertEqual(Item.query.count(), 2)

    def test_delete_blocked_while_on_loan(self):
        box = self.make_box()
        record = self.make_record(self.user, box)
        with self.assertRaises(ValueError):
            BoxService.delete_box(box.id)

        record.item.status = "available"
        BoxService.delete_box(box.id)
        self.assertEqual(Box.query.count(), 0)
        self.assertEqual(Item.query.count(), 0)

    def test_deleted_box_detaches_old_records(self):
        box = self.make_box()
        record = self.make_record(self.user, box, status="returned", returned_at=self.now)
        record.item.status = "available"
        db.session.commit()

        BoxService.delete_box(box.id)
        db.session.expire_all()

        record = RecordRepo.get(record.id)
        self.assertIsNone(record.box_id)
        self.assertIsNone(record.item_id)

    def test_missing_box(self):
        with self.assertRaises(BoxNotFound):
            BoxService.get_box(999)
