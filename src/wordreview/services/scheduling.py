"""Forgetting-curve scheduling for tracked words.

Each mastery level maps to a review interval; remembering a word moves it one
level up the table, forgetting it moves it one level down. Every function here
is pure: the caller supplies ``now``.
"""
import logging
from datetime import datetime, timedelta
from typing import Union

from wordreview.config import settings
from wordreview.models.review_models import RecallOutcome, ReviewResult

logger = logging.getLogger(__name__)


def clamp_mastery(level: int) -> int:
    """Clamp a mastery level into the valid range."""
    clamped = max(0, min(level, settings.review.max_mastery))
    if clamped != level:
        logger.warning(f"Mastery level {level} out of range, clamped to {clamped}")
    return clamped


def _as_outcome(outcome: Union[RecallOutcome, bool]) -> RecallOutcome:
    if isinstance(outcome, RecallOutcome):
        return outcome
    if isinstance(outcome, bool):
        return RecallOutcome.from_bool(outcome)
    raise TypeError(f"Unsupported recall outcome: {outcome!r}")


def next_mastery(current_mastery: int, outcome: Union[RecallOutcome, bool]) -> int:
    """Mastery level after a review with the given outcome."""
    current_mastery = clamp_mastery(current_mastery)
    if _as_outcome(outcome) is RecallOutcome.REMEMBERED:
        return min(current_mastery + 1, settings.review.max_mastery)
    return max(current_mastery - 1, 0)


def interval_for_level(level: int) -> int:
    """Days until the next review for a word at the given mastery level."""
    intervals = settings.review.intervals
    if 0 <= level < len(intervals):
        return intervals[level]
    # Unreachable while mastery stays clamped to the table
    logger.error(
        f"No review interval for mastery level {level}, "
        f"using {settings.review.fallback_interval_days} days"
    )
    return settings.review.fallback_interval_days


def compute_next_review(
    current_mastery: int,
    outcome: Union[RecallOutcome, bool],
    now: datetime,
) -> ReviewResult:
    """Compute the new mastery level and due date for a reviewed word.

    Args:
        current_mastery: Mastery level before the review (0..5).
        outcome: Whether the word was remembered. A bool is accepted.
        now: Reference time of the review.

    Returns:
        ReviewResult with the new mastery, the next review date and the
        interval in days that produced it.
    """
    new_mastery = next_mastery(current_mastery, outcome)
    days = interval_for_level(new_mastery)
    return ReviewResult(
        new_mastery=new_mastery,
        next_review_date=now + timedelta(days=days),
        interval_days=days,
    )


def initial_review_date(now: datetime) -> datetime:
    """Due date of a word that was just added to a collection."""
    return now + timedelta(hours=settings.review.initial_delay_hours)
