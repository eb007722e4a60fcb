"""Models for review-related data structures."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class RecallOutcome(Enum):
    """Result of a single recall attempt."""
    REMEMBERED = "remembered"
    FORGOTTEN = "forgotten"

    @classmethod
    def from_bool(cls, remembered: bool) -> "RecallOutcome":
        return cls.REMEMBERED if remembered else cls.FORGOTTEN


class SessionState(Enum):
    """States of a review session."""
    LOADING = "loading"
    EMPTY = "empty"  # Nothing due
    PRESENTING = "presenting"  # Definition hidden
    REVEALED = "revealed"  # Definition shown, awaiting outcome
    COMPLETE = "complete"
    ERROR = "error"  # Initial fetch failed
    ABANDONED = "abandoned"  # User left before the queue was finished


class WordbookFilter(Enum):
    """Collection view filters."""
    ALL = "all"
    REVIEW = "review"
    MASTERED = "mastered"


@dataclass(frozen=True)
class ReviewResult:
    """Output of the scheduling engine."""
    new_mastery: int
    next_review_date: datetime
    interval_days: int


@dataclass(frozen=True)
class ReviewItem:
    """Snapshot of a tracked word taken at session start."""
    tracking_id: int
    word_id: int
    text: str
    definition: str
    mastery_level: int
    next_review_date: datetime
    review_count: int = 0
    phonetic: Optional[str] = None
    part_of_speech: Optional[str] = None
    difficulty_level: Optional[str] = None
    last_reviewed_at: Optional[datetime] = None
    is_favorited: bool = False


@dataclass(frozen=True)
class ReviewUpdate:
    """Fields written back to a tracked word after a review."""
    mastery_level: int
    next_review_date: datetime
    last_reviewed_at: datetime
    review_count: int


@dataclass(frozen=True)
class Notice:
    """User-visible notification."""
    title: str
    description: str
    level: str = "info"  # info, error

    @property
    def is_error(self) -> bool:
        return self.level == "error"
