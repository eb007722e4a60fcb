"""Service for managing a user's word collection."""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from wordreview.config import settings
from wordreview.errors import OutOfRangeMastery, UpdateFailure, WordNotFound
from wordreview.models.base import utcnow
from wordreview.models.models import TrackedWord, Word
from wordreview.models.review_models import ReviewItem, ReviewUpdate, WordbookFilter
from wordreview.services.review_selector import due_count_query, due_query
from wordreview.services.scheduling import initial_review_date

logger = logging.getLogger(__name__)


def to_review_item(tracked: TrackedWord) -> ReviewItem:
    """Snapshot a tracked word together with its catalog fields."""
    word = tracked.word
    return ReviewItem(
        tracking_id=tracked.id,
        word_id=tracked.word_id,
        text=word.text,
        definition=word.definition,
        mastery_level=tracked.mastery_level,
        next_review_date=tracked.next_review_date,
        review_count=tracked.review_count,
        phonetic=word.phonetic,
        part_of_speech=word.part_of_speech,
        difficulty_level=word.difficulty_level,
        last_reviewed_at=tracked.last_reviewed_at,
        is_favorited=tracked.is_favorited,
    )


class WordService:
    """Service for managing a user's word collection."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_word(self, word_id: int) -> Optional[Word]:
        """Get a catalog word by its ID."""
        return self.db.query(Word).filter(Word.id == word_id).first()

    def get_word_by_text(self, text: str) -> Optional[Word]:
        """Get a catalog word by its text."""
        return self.db.query(Word).filter(Word.text.ilike(text)).first()

    def create_word(
        self,
        text: str,
        definition: str,
        phonetic: Optional[str] = None,
        part_of_speech: Optional[str] = None,
        difficulty_level: Optional[str] = None,
    ) -> Word:
        """Add a word to the catalog, or return the existing entry."""
        existing_word = self.get_word_by_text(text)
        if existing_word:
            return existing_word

        word = Word(
            text=text,
            definition=definition,
            phonetic=phonetic,
            part_of_speech=part_of_speech,
            difficulty_level=difficulty_level,
        )
        self.db.add(word)
        self.db.commit()
        self.db.refresh(word)
        return word

    def get_tracked_word(self, user_id: int, tracking_id: int) -> Optional[TrackedWord]:
        """Get a tracked word owned by the user."""
        return (
            self.db.query(TrackedWord)
            .filter(
                and_(
                    TrackedWord.id == tracking_id,
                    TrackedWord.user_id == user_id,
                )
            )
            .first()
        )

    def add_word(self, user_id: int, word_id: int, now: Optional[datetime] = None) -> TrackedWord:
        """Start tracking a catalog word for a user."""
        if not self.get_word(word_id):
            raise WordNotFound(f"Word {word_id} not found")

        existing = (
            self.db.query(TrackedWord)
            .filter(
                and_(
                    TrackedWord.user_id == user_id,
                    TrackedWord.word_id == word_id,
                )
            )
            .first()
        )
        if existing:
            return existing

        now = now or utcnow()
        tracked = TrackedWord(
            user_id=user_id,
            word_id=word_id,
            mastery_level=0,
            next_review_date=initial_review_date(now),
            review_count=0,
            is_favorited=False,
        )
        self.db.add(tracked)
        self.db.commit()
        self.db.refresh(tracked)
        logger.info(f"User {user_id} started tracking word {word_id} (tracking id {tracked.id})")
        return tracked

    def remove_word(self, user_id: int, tracking_id: int) -> None:
        """Remove a word from the user's collection."""
        tracked = self.get_tracked_word(user_id, tracking_id)
        if not tracked:
            raise WordNotFound(f"Tracked word {tracking_id} not found for user {user_id}")

        self.db.delete(tracked)
        self.db.commit()
        logger.info(f"User {user_id} removed tracked word {tracking_id}")

    def toggle_favorite(self, user_id: int, tracking_id: int) -> bool:
        """Flip the favorite flag of a tracked word and return the new value."""
        tracked = self.get_tracked_word(user_id, tracking_id)
        if not tracked:
            raise WordNotFound(f"Tracked word {tracking_id} not found for user {user_id}")

        tracked.is_favorited = not tracked.is_favorited
        self.db.commit()
        return tracked.is_favorited

    def get_user_words(
        self,
        user_id: int,
        word_filter: WordbookFilter = WordbookFilter.ALL,
        now: Optional[datetime] = None,
    ) -> List[TrackedWord]:
        """Get the user's tracked words, earliest due first."""
        query = (
            self.db.query(TrackedWord)
            .options(joinedload(TrackedWord.word))
            .filter(TrackedWord.user_id == user_id)
        )

        if word_filter is WordbookFilter.REVIEW:
            query = query.filter(TrackedWord.next_review_date <= (now or utcnow()))
        elif word_filter is WordbookFilter.MASTERED:
            query = query.filter(TrackedWord.mastery_level >= settings.review.max_mastery)

        return query.order_by(TrackedWord.next_review_date.asc(), TrackedWord.id.asc()).all()

    def get_wordbook_counts(self, user_id: int, now: Optional[datetime] = None) -> Dict[str, int]:
        """Get the size of each collection view."""
        now = now or utcnow()
        base = self.db.query(TrackedWord).filter(TrackedWord.user_id == user_id)
        return {
            WordbookFilter.ALL.value: base.count(),
            WordbookFilter.REVIEW.value: base.filter(TrackedWord.next_review_date <= now).count(),
            WordbookFilter.MASTERED.value: base.filter(
                TrackedWord.mastery_level >= settings.review.max_mastery
            ).count(),
        }

    def get_due_words(self, user_id: int, now: datetime) -> List[TrackedWord]:
        """Get the user's words due at `now`, earliest due first."""
        return list(
            self.db.scalars(due_query(user_id, now).options(joinedload(TrackedWord.word))).unique()
        )

    def count_due_words(self, user_id: int, now: datetime) -> int:
        """Count the user's words due at `now`."""
        return self.db.scalar(due_count_query(user_id, now)) or 0

    def record_review(
        self,
        tracking_id: int,
        update: ReviewUpdate,
        user_id: Optional[int] = None,
    ) -> TrackedWord:
        """Write a review outcome to the tracked word with the given tracking ID."""
        query = self.db.query(TrackedWord).filter(TrackedWord.id == tracking_id)
        if user_id is not None:
            query = query.filter(TrackedWord.user_id == user_id)
        tracked = query.first()
        if not tracked:
            raise UpdateFailure(f"Tracked word {tracking_id} not found")

        try:
            tracked.mastery_level = update.mastery_level
            tracked.next_review_date = update.next_review_date
            tracked.last_reviewed_at = update.last_reviewed_at
            tracked.review_count = update.review_count
            self.db.commit()
        except (SQLAlchemyError, OutOfRangeMastery):
            self.db.rollback()
            raise

        logger.debug(
            f"Recorded review for tracked word {tracking_id}: mastery={update.mastery_level}, "
            f"next={update.next_review_date.isoformat()}, count={update.review_count}"
        )
        return tracked
