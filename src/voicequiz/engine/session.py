"""Quiz session state machine: present → evaluate → advance or finish."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from voicequiz.engine.errors import EmptyLevelError, InvalidSessionTransition
from voicequiz.engine.level_loader import Level, Question

DEFAULT_MISTAKE_LIMIT = 3


class SessionOutcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"  # Hit the mistake limit


class ProgressStatus(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Outcome:
    result: SessionOutcome
    score: int


@dataclass(frozen=True)
class ProgressUpdate:
    """What the progress store should record once a session is over."""
    level_number: int
    status: ProgressStatus
    score: int
    unlock_next: bool


@dataclass(frozen=True)
class AnswerResult:
    correct: bool
    submitted: str
    correct_answer: str
    finished: bool


@dataclass
class QuizSession:
    level: Level
    mistake_limit: int = DEFAULT_MISTAKE_LIMIT
    current_index: int = 0
    score: int = 0
    mistakes: int = 0
    result: Optional[SessionOutcome] = None
    _pending_update: Optional[ProgressUpdate] = field(default=None, init=False, repr=False)

    @classmethod
    def start(cls, level: Level, mistake_limit: int = DEFAULT_MISTAKE_LIMIT) -> "QuizSession":
        if not level.questions:
            raise EmptyLevelError(f"Level {level.number} has no questions")
        return cls(level=level, mistake_limit=mistake_limit)

    @property
    def is_terminal(self) -> bool:
        return self.result is not None

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_terminal:
            return None
        return self.level.questions[self.current_index]

    @property
    def total_questions(self) -> int:
        return len(self.level.questions)

    def submit_answer(self, candidate: str) -> AnswerResult:
        """Judge ``candidate`` against the current question and move on.

        Wrong answers advance as well; the question is not asked again.
        """
        if self.is_terminal:
            raise InvalidSessionTransition(
                f"Session for level {self.level.number} is already {self.result.value}"
            )

        question = self.level.questions[self.current_index]
        correct = candidate == question.correct_answer

        if correct:
            self.score += 1
        else:
            self.mistakes += 1

        if self.mistakes >= self.mistake_limit:
            self._finish(SessionOutcome.FAILED)
        elif self.current_index + 1 < self.total_questions:
            self.current_index += 1
        else:
            self._finish(SessionOutcome.COMPLETED)

        return AnswerResult(
            correct=correct,
            submitted=candidate,
            correct_answer=question.correct_answer,
            finished=self.is_terminal,
        )

    def outcome(self) -> Outcome:
        if self.result is None:
            raise InvalidSessionTransition("Session has not finished yet")
        if self.result is SessionOutcome.FAILED:
            return Outcome(result=self.result, score=0)
        return Outcome(result=self.result, score=self.score)

    def take_progress_update(self) -> Optional[ProgressUpdate]:
        """Hand out the end-of-session update once; later calls get None."""
        update = self._pending_update
        self._pending_update = None
        return update

    def _finish(self, result: SessionOutcome) -> None:
        self.result = result
        completed = result is SessionOutcome.COMPLETED
        final = self.outcome()
        self._pending_update = ProgressUpdate(
            level_number=self.level.number,
            status=ProgressStatus.COMPLETED if completed else ProgressStatus.UNLOCKED,
            score=final.score,
            unlock_next=completed,
        )

    def to_dict(self) -> dict:
        question = self.current_question
        return {
            "levelNumber": self.level.number,
            "levelTitle": self.level.title,
            "currentIndex": self.current_index,
            "totalQuestions": self.total_questions,
            "score": self.score,
            "mistakes": self.mistakes,
            "mistakeLimit": self.mistake_limit,
            "terminal": self.is_terminal,
            "outcome": self.result.value if self.result else None,
            "question": question_to_dict(question) if question else None,
        }


def question_to_dict(question: Question) -> dict:
    return {
        "id": question.id,
        "text": question.text,
        "imageUrl": question.image_url,
        "options": list(question.options),
    }
