"""Persistence contract used by review sessions."""
import logging
from datetime import datetime
from typing import List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wordreview.errors import FetchFailure, OutOfRangeMastery, UpdateFailure
from wordreview.models.review_models import ReviewItem, ReviewUpdate
from wordreview.services.word_service import WordService, to_review_item

logger = logging.getLogger(__name__)


class ReviewStore(Protocol):
    """Storage operations a review session depends on."""

    async def fetch_due_words(self, user_id: int, now: datetime) -> List[ReviewItem]:
        """Words due at `now`, earliest due first. Raises FetchFailure."""
        ...

    async def update_tracked_word(self, tracking_id: int, update: ReviewUpdate) -> None:
        """Persist a review outcome. Raises UpdateFailure."""
        ...

    async def count_due_words(self, user_id: int, now: datetime) -> int:
        """Number of words due at `now`. Raises FetchFailure."""
        ...


class SqlReviewStore:
    """ReviewStore backed by the SQLAlchemy models."""

    def __init__(self, db: Session, user_id: Optional[int] = None):
        """Initialize the store; `user_id` restricts updates to that user's rows."""
        self.db = db
        self.user_id = user_id
        self.word_service = WordService(db)

    async def fetch_due_words(self, user_id: int, now: datetime) -> List[ReviewItem]:
        try:
            return [to_review_item(tracked) for tracked in self.word_service.get_due_words(user_id, now)]
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch due words for user {user_id}: {e}")
            raise FetchFailure("Failed to load review words") from e

    async def update_tracked_word(self, tracking_id: int, update: ReviewUpdate) -> None:
        try:
            self.word_service.record_review(tracking_id, update, user_id=self.user_id)
        except (SQLAlchemyError, OutOfRangeMastery) as e:
            logger.error(f"Failed to update tracked word {tracking_id}: {e}")
            raise UpdateFailure("Failed to update progress") from e

    async def count_due_words(self, user_id: int, now: datetime) -> int:
        try:
            return self.word_service.count_due_words(user_id, now)
        except SQLAlchemyError as e:
            logger.error(f"Failed to count due words for user {user_id}: {e}")
            raise FetchFailure("Failed to count review words") from e
