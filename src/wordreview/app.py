"""Console review application."""
import asyncio
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from wordreview.config import settings
from wordreview.models.base import SessionLocal, init_db
from wordreview.models.review_models import Notice, RecallOutcome, SessionState
from wordreview.monitoring import start_monitoring
from wordreview.services.reminder_service import ReminderService
from wordreview.services.review_session import ReviewSession
from wordreview.services.review_store import SqlReviewStore

ANSWERS = {
    "y": RecallOutcome.REMEMBERED,
    "n": RecallOutcome.FORGOTTEN,
}


class ReviewApp:
    """Runs review sessions against the configured database in a terminal."""

    def __init__(
        self,
        prompt: Optional[Callable[[str], str]] = None,
        output: Callable[[str], None] = print,
        session_factory: Callable[[], Session] = SessionLocal,
    ):
        """Initialize the application."""
        self.prompt = prompt or input
        self.output = output
        self.session_factory = session_factory
        self.db: Optional[Session] = None
        self.running = False
        self.logger = logging.getLogger(__name__)

    def start(self) -> None:
        """Start the application."""
        if self.running:
            return

        init_db()
        self.db = self.session_factory()
        self.logger.info("Database initialized")

        if settings.monitoring.enabled:
            start_monitoring(settings.monitoring.port)
            self.logger.info(f"Metrics served on port {settings.monitoring.port}")

        self.running = True

    def stop(self) -> None:
        """Stop the application."""
        if not self.running:
            return

        if self.db:
            self.db.close()
            self.db = None
            self.logger.info("Database session closed")

        self.running = False

    def show_notice(self, notice: Notice) -> None:
        prefix = "!" if notice.is_error else "*"
        self.output(f"{prefix} {notice.title}: {notice.description}")

    async def ask(self, message: str) -> str:
        loop = asyncio.get_running_loop()
        answer = await loop.run_in_executor(None, self.prompt, message)
        return answer.strip().lower()

    async def review(self, user_id: Optional[int]) -> SessionState:
        """Run one review session for the user."""
        if not self.running:
            self.start()

        if user_id is not None:
            reminder = ReminderService(self.db).get_reminder_message(user_id)
            if reminder:
                self.output(reminder)

        finished = asyncio.Event()
        session = ReviewSession(
            SqlReviewStore(self.db, user_id=user_id),
            user_id,
            notifier=self.show_notice,
            on_complete=finished.set,
        )

        state = await session.load()
        if state is SessionState.EMPTY:
            self.output("No words to review. You're all caught up!")
            return state
        if state is SessionState.ERROR:
            return state

        while session.state in (SessionState.PRESENTING, SessionState.REVEALED):
            item = session.current_item
            if session.state is SessionState.PRESENTING:
                self.output(f"\n[{session.index + 1}/{session.total}] {item.text} {item.phonetic or ''}".rstrip())
                answer = await self.ask("Show definition? [Enter / q] ")
                if answer == "q":
                    session.abandon()
                    return session.state
                session.reveal()
                self.output(f"({item.part_of_speech or '-'}) {item.definition}")
                continue

            answer = await self.ask("Remembered? [y / n / q] ")
            if answer == "q":
                session.abandon()
                return session.state
            if answer not in ANSWERS:
                continue
            await session.submit_outcome(ANSWERS[answer])

        await finished.wait()
        return session.state
