"""Due-word reminders shown outside of a review session."""
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import event
from sqlalchemy.orm import Session

from wordreview.config import settings
from wordreview.models.base import utcnow
from wordreview.models.models import TrackedWord
from wordreview.monitoring import due_words
from wordreview.services.review_store import ReviewStore
from wordreview.services.word_service import WordService

logger = logging.getLogger(__name__)

_CHANGE_EVENTS = ("after_insert", "after_update", "after_delete")


def watch_tracked_words(callback: Callable[[TrackedWord], None]) -> Callable[[], None]:
    """Call `callback` whenever a tracked word is inserted, updated or deleted.

    Returns a function that removes the listeners again.
    """

    def listener(mapper, connection, target: TrackedWord) -> None:
        callback(target)

    for name in _CHANGE_EVENTS:
        event.listen(TrackedWord, name, listener)

    def unsubscribe() -> None:
        for name in _CHANGE_EVENTS:
            if event.contains(TrackedWord, name, listener):
                event.remove(TrackedWord, name, listener)

    return unsubscribe


class ReminderService:
    """Service for building due-word reminders."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db
        self.word_service = WordService(db)

    def get_due_count(self, user_id: int, now: Optional[datetime] = None) -> int:
        """Get the number of words due for the user."""
        return self.word_service.count_due_words(user_id, now or utcnow())

    def get_reminder_message(self, user_id: int, now: Optional[datetime] = None) -> Optional[str]:
        """Generate a review reminder message, or None when nothing is due."""
        words_for_review = self.word_service.get_due_words(user_id, now or utcnow())

        if not words_for_review:
            return None

        preview_size = settings.review.reminder_preview_size
        message = f"{len(words_for_review)} words due for review\n"

        for tracked in words_for_review[:preview_size]:
            message += f"• {tracked.word.text}\n"

        if len(words_for_review) > preview_size:
            message += f"... and {len(words_for_review) - preview_size} more\n"

        message += "Keep your memory fresh!"

        return message


class DueCountBadge:
    """Cached due-word count for one user, refreshed on demand."""

    def __init__(
        self,
        store: ReviewStore,
        user_id: int,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.user_id = user_id
        self.clock = clock or utcnow
        self.count = 0
        self.stale = True
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def visible(self) -> bool:
        return self.count > 0

    async def refresh(self) -> int:
        """Re-fetch the due count."""
        self.count = await self.store.count_due_words(self.user_id, self.clock())
        self.stale = False
        due_words.set(self.count)
        return self.count

    async def get(self) -> int:
        """Return the due count, refreshing it first when stale."""
        if self.stale:
            return await self.refresh()
        return self.count

    def invalidate(self, target: Optional[TrackedWord] = None) -> None:
        """Mark the cached count as outdated."""
        if target is not None and target.user_id != self.user_id:
            return
        self.stale = True

    def watch(self) -> None:
        """Invalidate the count whenever the user's tracked words change."""
        if self._unsubscribe is None:
            self._unsubscribe = watch_tracked_words(self.invalidate)

    def close(self) -> None:
        """Stop watching for changes."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
