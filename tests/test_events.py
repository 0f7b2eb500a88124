import unittest

from boxbox import events


class EventsTests(unittest.TestCase):
    def test_subscribe_and_unsubscribe(self):
        calls = []
        unsubscribe = events.subscribe(lambda: calls.append(1))

        events.notify_records_changed()
        events.notify_admin_feed_changed()
        self.assertEqual(len(calls), 2)

        unsubscribe()
        events.notify_records_changed()
        self.assertEqual(len(calls), 2)

    def test_subscribe_to_one_signal(self):
        calls = []
        unsubscribe = events.subscribe(lambda: calls.append(1), signal=events.admin_feed_changed)
        try:
            events.notify_records_changed()
            events.notify_admin_feed_changed()
        finally:
            unsubscribe()
        self.assertEqual(len(calls), 1)

    def test_revision_moves_on_every_change(self):
        before = events.revision()
        events.notify_records_changed()
        events.notify_admin_feed_changed()
        self.assertEqual(events.revision(), before + 2)
