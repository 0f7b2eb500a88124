from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from boxbox.models.borrow import STATUS_RETURNED

DAY = timedelta(days=1)
_ONE_US = timedelta(microseconds=1)
_DAY_US = DAY // _ONE_US

NOTIFY_WITHIN_DAYS = 3

OVERDUE = "overdue"
DUE_TODAY = "due_today"
DAYS_REMAINING = "days_remaining"


@dataclass(frozen=True)
class DueStatus:
    kind: str
    days_left: int

    @property
    def is_overdue(self) -> bool:
        return self.kind == OVERDUE

    @property
    def days_late(self) -> int:
        return -self.days_left if self.days_left < 0 else 0

    def label(self) -> str:
        if self.kind == OVERDUE:
            n = self.days_late
            return f"Overdue by {n} day{'s' if n != 1 else ''}"
        if self.kind == DUE_TODAY:
            return "Due today"
        n = self.days_left
        return f"{n} day{'s' if n != 1 else ''} left"


def due_date(borrowed_at: datetime, days_borrowed: int) -> datetime:
    return borrowed_at + days_borrowed * DAY


def days_left(borrowed_at: datetime, days_borrowed: int, now: datetime) -> int:
    """
    ceil((due - now) / 1 day), computed on integer microseconds so that a loan
    exactly N days from due gives N, not N+1 from float error.
    """
    diff_us = (due_date(borrowed_at, days_borrowed) - now) // _ONE_US
    return -((-diff_us) // _DAY_US)


def classify(borrowed_at: datetime, days_borrowed: int, now: datetime) -> DueStatus:
    left = days_left(borrowed_at, days_borrowed, now)
    if left < 0:
        return DueStatus(OVERDUE, left)
    if left == 0:
        return DueStatus(DUE_TODAY, 0)
    return DueStatus(DAYS_REMAINING, left)


def should_show_due_notification(borrowed_at: datetime, days_borrowed: int, status: str, now: datetime) -> bool:
    if status == STATUS_RETURNED:
        return False
    return days_left(borrowed_at, days_borrowed, now) <= NOTIFY_WITHIN_DAYS
