"""Error kinds raised by the quiz engine."""

from __future__ import annotations


class QuizError(Exception):
    pass


class UnsupportedCapability(QuizError):
    """Speech capture or playback is not available in this environment."""


class InvalidSessionTransition(QuizError):
    pass


class EmptyLevelError(QuizError):
    pass


class LevelFormatError(QuizError):
    pass


class LevelNotFoundError(QuizError):
    pass


class LevelLockedError(QuizError):
    pass


class PersistenceFailure(QuizError):
    """A progress write was rejected by the store."""
