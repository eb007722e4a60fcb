"""Selection of words that are due for review."""
from datetime import datetime
from typing import Iterable, List, TypeVar

from sqlalchemy import Select, func, select

from wordreview.models.models import TrackedWord

T = TypeVar("T")


def select_due(records: Iterable[T], now: datetime) -> List[T]:
    """Return the records due at `now`, earliest due first.

    A record is due when its ``next_review_date`` is at or before `now`.
    The sort is stable, so records due at the same moment keep their input
    order. An empty result means the user is caught up.
    """
    due = [record for record in records if record.next_review_date <= now]
    return sorted(due, key=lambda record: record.next_review_date)


def count_due(records: Iterable[T], now: datetime) -> int:
    """Count the records due at `now`."""
    return sum(1 for record in records if record.next_review_date <= now)


def due_query(user_id: int, now: datetime) -> Select:
    """Due tracked words of a user, as a query for the database."""
    return (
        select(TrackedWord)
        .where(
            TrackedWord.user_id == user_id,
            TrackedWord.next_review_date <= now,
        )
        .order_by(TrackedWord.next_review_date.asc(), TrackedWord.id.asc())
    )


def due_count_query(user_id: int, now: datetime) -> Select:
    """Number of due tracked words of a user, as a query for the database."""
    return (
        select(func.count(TrackedWord.id))
        .where(
            TrackedWord.user_id == user_id,
            TrackedWord.next_review_date <= now,
        )
    )
