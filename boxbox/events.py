"""
Change feed.

Services send ``records_changed`` / ``admin_feed_changed`` after every commit
that touches borrow records, items, boxes or the admin feed. Receivers are
expected to refetch full state; no ordering is guaranteed. Polling clients
read ``revision()`` instead and refetch when it moves.
"""
from __future__ import annotations

import threading

from blinker import Namespace

_signals = Namespace()

records_changed = _signals.signal("records-changed")
admin_feed_changed = _signals.signal("admin-feed-changed")

_lock = threading.Lock()
_revision = 0


def revision() -> int:
    return _revision


def _bump(sender, **kwargs):
    global _revision
    with _lock:
        _revision += 1


records_changed.connect(_bump, weak=False)
admin_feed_changed.connect(_bump, weak=False)


def subscribe(listener, signal=None):
    """
    Connects ``listener`` (called with no arguments) to one signal, or to both
    when ``signal`` is None. Returns a callable that disconnects it again.
    """
    targets = [signal] if signal is not None else [records_changed, admin_feed_changed]

    def _receiver(sender, **kwargs):
        listener()

    for s in targets:
        s.connect(_receiver, weak=False)

    def unsubscribe():
        for s in targets:
            s.disconnect(_receiver)

    return unsubscribe


def notify_records_changed(sender=None, **extra):
    records_changed.send(sender, **extra)


def notify_admin_feed_changed(sender=None, **extra):
    admin_feed_changed.send(sender, **extra)
