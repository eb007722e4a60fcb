"""Tests for word service."""
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.orm import Session

from conftest import NOW, make_word, track
from wordreview.errors import UpdateFailure, WordNotFound
from wordreview.models.models import TrackedWord, User
from wordreview.models.review_models import ReviewUpdate, WordbookFilter
from wordreview.services.word_service import WordService, to_review_item


@pytest.fixture
def word_service(db: Session) -> WordService:
    """Create a word service instance."""
    return WordService(db)


def test_create_word(word_service: WordService) -> None:
    """Catalog words are created once."""
    word = word_service.create_word("serendipity", "A happy accident", phonetic="/ˌserənˈdipədē/")
    again = word_service.create_word("Serendipity", "ignored")

    assert again.id == word.id
    assert word_service.get_word(word.id).definition == "A happy accident"
    assert word_service.get_word_by_text("SERENDIPITY").id == word.id


def test_add_word(word_service: WordService, db: Session, user: User) -> None:
    """A new tracked word starts at level 0 and is due a day later."""
    word = make_word(db)

    tracked = word_service.add_word(user.id, word.id, now=NOW)

    assert tracked.mastery_level == 0
    assert tracked.review_count == 0
    assert tracked.last_reviewed_at is None
    assert tracked.is_favorited is False
    assert tracked.next_review_date == datetime(2024, 1, 2, tzinfo=UTC)


def test_add_word_twice(word_service: WordService, db: Session, user: User) -> None:
    """Adding a tracked word again returns the existing record."""
    word = make_word(db)
    first = word_service.add_word(user.id, word.id, now=NOW)
    second = word_service.add_word(user.id, word.id, now=NOW + timedelta(days=3))

    assert second.id == first.id
    assert db.query(TrackedWord).count() == 1


def test_add_unknown_word(word_service: WordService, user: User) -> None:
    """Unknown catalog words cannot be tracked."""
    with pytest.raises(WordNotFound):
        word_service.add_word(user.id, 999)


def test_remove_word(word_service: WordService, db: Session, user: User, other_user: User) -> None:
    """Only the owner can remove a tracked word."""
    tracked = track(db, user, NOW)

    with pytest.raises(WordNotFound):
        word_service.remove_word(other_user.id, tracked.id)

    word_service.remove_word(user.id, tracked.id)
    assert word_service.get_tracked_word(user.id, tracked.id) is None

    with pytest.raises(WordNotFound):
        word_service.remove_word(user.id, tracked.id)


def test_toggle_favorite(word_service: WordService, db: Session, user: User, other_user: User) -> None:
    """Favorite toggling flips the flag and leaves scheduling alone."""
    tracked = track(db, user, NOW, mastery_level=3)

    assert word_service.toggle_favorite(user.id, tracked.id) is True
    assert word_service.toggle_favorite(user.id, tracked.id) is False
    assert tracked.mastery_level == 3
    assert tracked.next_review_date == NOW

    with pytest.raises(WordNotFound):
        word_service.toggle_favorite(other_user.id, tracked.id)


def test_user_words_filters(word_service: WordService, db: Session, user: User, other_user: User) -> None:
    """Collection views: all, due for review, mastered."""
    later = track(db, user, NOW + timedelta(days=10), mastery_level=5)
    due = track(db, user, NOW - timedelta(days=1), mastery_level=2)
    track(db, other_user, NOW - timedelta(days=1))

    assert [w.id for w in word_service.get_user_words(user.id)] == [due.id, later.id]
    assert [w.id for w in word_service.get_user_words(user.id, WordbookFilter.REVIEW, now=NOW)] == [due.id]
    assert [w.id for w in word_service.get_user_words(user.id, WordbookFilter.MASTERED)] == [later.id]
    assert word_service.get_wordbook_counts(user.id, now=NOW) == {"all": 2, "review": 1, "mastered": 1}


def test_due_words(word_service: WordService, user: User, due_words: list[TrackedWord]) -> None:
    """Due words come back earliest first with their catalog data."""
    result = word_service.get_due_words(user.id, NOW)

    assert [w.id for w in result] == [w.id for w in due_words]
    assert [w.word.text for w in result] == ["apple", "banana", "cherry"]
    assert word_service.count_due_words(user.id, NOW) == 3
    assert word_service.count_due_words(user.id, NOW - timedelta(days=30)) == 0


def test_to_review_item(db: Session, user: User) -> None:
    """Snapshots carry the tracking ID, not the word ID."""
    tracked = track(db, user, NOW, mastery_level=1, review_count=2, text="gloss")

    item = to_review_item(tracked)

    assert item.tracking_id == tracked.id
    assert item.word_id == tracked.word_id
    assert item.text == "gloss"
    assert item.mastery_level == 1
    assert item.review_count == 2


def test_record_review(word_service: WordService, db: Session, user: User) -> None:
    """Recording a review writes all four fields."""
    tracked = track(db, user, NOW, mastery_level=1, review_count=2)
    update = ReviewUpdate(
        mastery_level=2,
        next_review_date=NOW + timedelta(days=4),
        last_reviewed_at=NOW,
        review_count=3,
    )

    word_service.record_review(tracked.id, update)
    db.expire_all()
    reloaded = db.get(TrackedWord, tracked.id)

    assert reloaded.mastery_level == 2
    assert reloaded.next_review_date == NOW + timedelta(days=4)
    assert reloaded.last_reviewed_at == NOW
    assert reloaded.review_count == 3


def test_record_review_missing_or_foreign(
    word_service: WordService, db: Session, user: User, other_user: User
) -> None:
    """Updates never touch another user's record."""
    tracked = track(db, user, NOW)
    update = ReviewUpdate(1, NOW + timedelta(days=2), NOW, 1)

    with pytest.raises(UpdateFailure):
        word_service.record_review(999, update)
    with pytest.raises(UpdateFailure):
        word_service.record_review(tracked.id, update, user_id=other_user.id)

    db.refresh(tracked)
    assert tracked.review_count == 0
