"""Review session: walks the due-word queue one card at a time."""
import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple, Union

from wordreview.config import settings
from wordreview.errors import (
    FetchFailure,
    InvalidTransition,
    NotAuthenticated,
    ReviewError,
    UpdateFailure,
)
from wordreview.models.base import utcnow
from wordreview.models.review_models import (
    Notice,
    RecallOutcome,
    ReviewItem,
    ReviewResult,
    ReviewUpdate,
    SessionState,
)
from wordreview.monitoring import review_errors, review_sessions, reviews_recorded, session_outcomes
from wordreview.services.review_selector import select_due
from wordreview.services.review_store import ReviewStore
from wordreview.services.scheduling import compute_next_review

logger = logging.getLogger(__name__)


class ReviewSession:
    """State machine for one pass through a user's due words.

    The session starts in LOADING. ``load()`` fetches the due queue and moves
    to EMPTY, PRESENTING or ERROR. A card is revealed with ``reveal()`` and
    answered with ``submit_outcome()``; a successful write moves on to the
    next card, or to COMPLETE after the last one. A failed write leaves the
    session on the same revealed card so the answer can be submitted again.
    ``abandon()`` ends an unfinished session in ABANDONED.
    """

    def __init__(
        self,
        store: ReviewStore,
        user_id: Optional[int],
        clock: Optional[Callable[[], datetime]] = None,
        notifier: Optional[Callable[[Notice], None]] = None,
        on_complete: Optional[Callable[[], None]] = None,
        completion_delay: Optional[float] = None,
    ):
        """Initialize the session.

        Args:
            store: Persistence collaborator.
            user_id: Owner of the reviewed words, None when nobody is signed in.
            clock: Source of the current time, defaults to UTC wall clock.
            notifier: Receives user-visible notices.
            on_complete: Called once, `completion_delay` seconds after the
                last card was answered.
            completion_delay: Defaults to COMPLETION_DELAY_SECONDS.
        """
        self.store = store
        self.user_id = user_id
        self.clock = clock or utcnow
        self.notifier = notifier
        self.on_complete = on_complete
        self.completion_delay = (
            settings.review.completion_delay_seconds if completion_delay is None else completion_delay
        )
        self.notices: List[Notice] = []

        self._state = SessionState.LOADING
        self._items: Tuple[ReviewItem, ...] = ()
        self._index = 0
        self._submitting = False
        self._error: Optional[ReviewError] = None
        self._results: List[Tuple[ReviewItem, ReviewResult]] = []
        self._completion_handle: Optional[asyncio.TimerHandle] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def index(self) -> int:
        return self._index

    @property
    def total(self) -> int:
        return len(self._items)

    @property
    def error(self) -> Optional[ReviewError]:
        """Last surfaced error, cleared by the next successful step."""
        return self._error

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def can_submit(self) -> bool:
        return self._state is SessionState.REVEALED and not self._submitting

    @property
    def definition_visible(self) -> bool:
        return self._state is SessionState.REVEALED

    @property
    def current_item(self) -> Optional[ReviewItem]:
        if self._state in (SessionState.PRESENTING, SessionState.REVEALED):
            return self._items[self._index]
        return None

    @property
    def remaining(self) -> Tuple[ReviewItem, ...]:
        """Cards after the current one, in queue order."""
        if self._state in (SessionState.PRESENTING, SessionState.REVEALED):
            return self._items[self._index + 1:]
        return ()

    @property
    def results(self) -> Tuple[Tuple[ReviewItem, ReviewResult], ...]:
        return tuple(self._results)

    async def load(self) -> SessionState:
        """Fetch the due queue."""
        if self._state not in (SessionState.LOADING, SessionState.ERROR):
            raise InvalidTransition(f"Cannot load a session in state {self._state.value}")

        self._state = SessionState.LOADING
        self._items = ()
        self._index = 0
        self._error = None

        if self.user_id is None:
            self._fail_load(NotAuthenticated("Not authenticated"))
            return self._state

        review_sessions.inc()
        now = self.clock()
        try:
            items = await self.store.fetch_due_words(self.user_id, now)
        except ReviewError as e:
            if self._state is not SessionState.ABANDONED:
                self._fail_load(e)
            return self._state
        except Exception as e:
            logger.exception(f"Unexpected error fetching due words for user {self.user_id}")
            if self._state is not SessionState.ABANDONED:
                self._fail_load(FetchFailure(str(e)))
            return self._state

        if self._state is SessionState.ABANDONED:
            return self._state

        self._items = tuple(select_due(items, now))

        if not self._items:
            self._state = SessionState.EMPTY
            session_outcomes.labels(state=self._state.value).inc()
            logger.info(f"No words due for user {self.user_id}")
            return self._state

        self._state = SessionState.PRESENTING
        logger.info(f"Review session for user {self.user_id} started with {len(self._items)} words")
        return self._state

    def reveal(self) -> SessionState:
        """Show the definition of the current card."""
        if self._state is not SessionState.PRESENTING:
            raise InvalidTransition(f"Cannot reveal in state {self._state.value}")
        self._state = SessionState.REVEALED
        return self._state

    async def submit_outcome(self, outcome: Union[RecallOutcome, bool]) -> SessionState:
        """Record whether the current card was remembered and move on.

        A submission made while another one is still in flight is ignored.
        """
        if self._submitting:
            logger.warning(f"Ignoring outcome for user {self.user_id}: a submission is already pending")
            return self._state
        if self._state is not SessionState.REVEALED:
            raise InvalidTransition(f"Cannot submit an outcome in state {self._state.value}")

        if isinstance(outcome, bool):
            outcome = RecallOutcome.from_bool(outcome)

        item = self._items[self._index]
        now = self.clock()
        result = compute_next_review(item.mastery_level, outcome, now)
        update = ReviewUpdate(
            mastery_level=result.new_mastery,
            next_review_date=result.next_review_date,
            last_reviewed_at=now,
            review_count=item.review_count + 1,
        )

        self._submitting = True
        try:
            await self.store.update_tracked_word(item.tracking_id, update)
        except ReviewError as e:
            if self._state is not SessionState.ABANDONED:
                self._fail_update(item, e)
            return self._state
        except Exception as e:
            logger.exception(f"Unexpected error updating tracked word {item.tracking_id}")
            if self._state is not SessionState.ABANDONED:
                self._fail_update(item, UpdateFailure(str(e)))
            return self._state
        finally:
            self._submitting = False

        reviews_recorded.labels(outcome=outcome.value).inc()
        logger.debug(
            f"Tracked word {item.tracking_id} ({item.text}) {outcome.value}: "
            f"mastery {item.mastery_level} -> {result.new_mastery}, next in {result.interval_days} days"
        )
        if self._state is SessionState.ABANDONED:
            return self._state

        self._error = None
        self._results.append((item, result))

        if self._index < len(self._items) - 1:
            self._index += 1
            self._state = SessionState.PRESENTING
        else:
            self._complete()
        return self._state

    def abandon(self) -> None:
        """Drop the session, e.g. when the user navigates away.

        An unfinished session moves to ABANDONED and stays there: a fetch or
        write still in flight no longer advances it, completes it or emits
        notices. A finished session keeps its state, only the pending
        completion callback is cancelled.
        """
        if self._completion_handle is not None:
            self._completion_handle.cancel()
            self._completion_handle = None
        if self._state not in (SessionState.LOADING, SessionState.PRESENTING, SessionState.REVEALED):
            return

        logger.debug(f"Review session for user {self.user_id} abandoned in state {self._state.value}")
        self._state = SessionState.ABANDONED
        self._items = ()
        self._index = 0
        session_outcomes.labels(state=self._state.value).inc()

    def _complete(self) -> None:
        self._state = SessionState.COMPLETE
        session_outcomes.labels(state=self._state.value).inc()
        logger.info(f"Review session for user {self.user_id} complete: {len(self._results)} words reviewed")
        self._notify(Notice("Review Complete!", "You've reviewed all words for now."))

        if self.on_complete is not None:
            loop = asyncio.get_running_loop()
            self._completion_handle = loop.call_later(self.completion_delay, self.on_complete)

    def _fail_load(self, error: ReviewError) -> None:
        self._error = error
        self._state = SessionState.ERROR
        session_outcomes.labels(state=self._state.value).inc()
        review_errors.labels(error_type=type(error).__name__).inc()
        logger.error(f"Failed to load review words for user {self.user_id}: {error}")
        if isinstance(error, NotAuthenticated):
            self._notify(Notice("Error", "Sign in to review your words", level="error"))
        else:
            self._notify(Notice("Error", "Failed to load review words", level="error"))

    def _fail_update(self, item: ReviewItem, error: ReviewError) -> None:
        self._error = error
        review_errors.labels(error_type=type(error).__name__).inc()
        logger.error(f"Failed to record review of tracked word {item.tracking_id}: {error}")
        self._notify(Notice("Error", "Failed to update progress", level="error"))

    def _notify(self, notice: Notice) -> None:
        self.notices.append(notice)
        if self.notifier is not None:
            self.notifier(notice)
