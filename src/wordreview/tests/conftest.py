"""Test configuration."""
import os
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Generator

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("COMPLETION_DELAY_SECONDS", "0")

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from sqlalchemy.orm import Session

from wordreview.models.base import SessionLocal, drop_db, init_db
from wordreview.models.models import TrackedWord, User, Word

fake = Faker()

NOW = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        drop_db()


@pytest.fixture
def user(db: Session) -> User:
    """Create a test user."""
    user = User(username=fake.unique.user_name(), email=fake.unique.email())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_user(db: Session) -> User:
    """Create a second test user."""
    user = User(username=fake.unique.user_name(), email=fake.unique.email())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_word(db: Session, text: str = None) -> Word:
    word = Word(
        text=text or fake.unique.word(),
        phonetic="/test/",
        definition=fake.sentence(),
        part_of_speech="noun",
        difficulty_level="beginner",
    )
    db.add(word)
    db.commit()
    db.refresh(word)
    return word


def track(
    db: Session,
    user: User,
    next_review_date: datetime,
    mastery_level: int = 0,
    review_count: int = 0,
    text: str = None,
) -> TrackedWord:
    """Create a tracked word for the user."""
    tracked = TrackedWord(
        user_id=user.id,
        word_id=make_word(db, text).id,
        mastery_level=mastery_level,
        next_review_date=next_review_date,
        review_count=review_count,
    )
    db.add(tracked)
    db.commit()
    db.refresh(tracked)
    return tracked


@pytest.fixture
def due_words(db: Session, user: User) -> list[TrackedWord]:
    """Three due words, earliest due first, plus one not yet due."""
    words = [
        track(db, user, NOW - timedelta(days=3), mastery_level=2, review_count=4, text="apple"),
        track(db, user, NOW - timedelta(days=1), mastery_level=0, review_count=0, text="banana"),
        track(db, user, NOW, mastery_level=5, review_count=9, text="cherry"),
    ]
    track(db, user, NOW + timedelta(seconds=1), text="damson")
    return words
