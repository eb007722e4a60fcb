"""Errors raised by the review scheduler."""


class ReviewError(Exception):
    """Base class for review scheduler errors."""


class NotAuthenticated(ReviewError):
    """No active user for a session-scoped operation."""


class FetchFailure(ReviewError):
    """The due-word query failed."""


class UpdateFailure(ReviewError):
    """A computed review outcome could not be persisted."""


class OutOfRangeMastery(ReviewError, ValueError):
    """A mastery level outside 0..5."""


class InvalidTransition(ReviewError):
    """A session action was requested in a state that does not accept it."""


class WordNotFound(ReviewError, ValueError):
    """A word or tracking record does not exist for the user."""
