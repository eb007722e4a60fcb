"""Database models for the review scheduler."""
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates

from wordreview.config import settings
from wordreview.errors import OutOfRangeMastery
from wordreview.models.base import Base, TimestampMixin, UTCDateTime


class User(Base, TimestampMixin):
    """User model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=True)
    email = Column(String, unique=True, nullable=True)

    # Relationships
    tracked_words = relationship(
        "TrackedWord", back_populates="user", cascade="all, delete-orphan"
    )


class Word(Base, TimestampMixin):
    """Word catalog entry."""

    __tablename__ = "words"

    id = Column(Integer, primary_key=True)
    text = Column(String, nullable=False, index=True)
    phonetic = Column(String)
    definition = Column(Text, nullable=False)
    part_of_speech = Column(String)
    difficulty_level = Column(String)  # beginner, intermediate, advanced

    # Relationships
    trackers = relationship("TrackedWord", back_populates="word")


class TrackedWord(Base, TimestampMixin):
    """A user's learning state for one catalog word."""

    __tablename__ = "user_words"
    __table_args__ = (
        UniqueConstraint("user_id", "word_id", name="uq_user_words_user_word"),
        CheckConstraint(
            f"mastery_level >= 0 AND mastery_level <= {settings.review.max_mastery}",
            name="ck_user_words_mastery_range",
        ),
        CheckConstraint("review_count >= 0", name="ck_user_words_review_count"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    word_id = Column(Integer, ForeignKey("words.id"), nullable=False)
    mastery_level = Column(Integer, nullable=False, default=0)
    next_review_date = Column(UTCDateTime, nullable=False, index=True)
    last_reviewed_at = Column(UTCDateTime, nullable=True)
    review_count = Column(Integer, nullable=False, default=0)
    is_favorited = Column(Boolean, nullable=False, default=False)

    # Relationships
    user = relationship("User", back_populates="tracked_words")
    word = relationship("Word", back_populates="trackers")

    @validates("mastery_level")
    def validate_mastery_level(self, key: str, value: int) -> int:
        if value is None or not 0 <= value <= settings.review.max_mastery:
            raise OutOfRangeMastery(f"mastery_level {value} outside 0..{settings.review.max_mastery}")
        return value

    @property
    def is_mastered(self) -> bool:
        return self.mastery_level >= settings.review.max_mastery

    def is_due(self, now: datetime) -> bool:
        """Whether the word is due for review at `now`."""
        return self.next_review_date <= now

    def __repr__(self) -> str:
        return (
            f"<TrackedWord id={self.id} user_id={self.user_id} word_id={self.word_id} "
            f"mastery={self.mastery_level} next={self.next_review_date}>"
        )
