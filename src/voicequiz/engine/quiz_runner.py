"""Drives one level attempt for one user: input → session → persisted outcome."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import structlog

from voicequiz.config.settings import Settings
from voicequiz.engine.errors import (
    InvalidSessionTransition,
    LevelLockedError,
    PersistenceFailure,
    UnsupportedCapability,
)
from voicequiz.engine.normalizer import Match, find_best_match
from voicequiz.engine.session import AnswerResult, ProgressStatus, ProgressUpdate, QuizSession
from voicequiz.engine.speech import (
    CaptureError,
    SilentPlayback,
    SpeechCapture,
    SpeechPlayback,
    UnavailableCapture,
)
from voicequiz.levels.registry import LevelRegistry
from voicequiz.state.progress import ProgressStore

logger = structlog.get_logger("voicequiz.engine.quiz_runner")

UNSUPPORTED_SPEECH_MESSAGE = "Speech recognition is not supported. Select an option instead."


@dataclass(frozen=True)
class NoConfidentMatch:
    """The utterance did not resolve to any option; ask again."""
    utterance: str


@dataclass(frozen=True)
class SpokenAnswer:
    match: Match
    answer: AnswerResult


UtteranceResult = Union[SpokenAnswer, NoConfidentMatch]
ListenResult = Union[SpokenAnswer, NoConfidentMatch, CaptureError]


class QuizRunner:
    """Session controller shared by the CLI and the JSON-lines server."""

    def __init__(
        self,
        user_id: str,
        registry: LevelRegistry,
        progress: ProgressStore,
        settings: Optional[Settings] = None,
        capture: Optional[SpeechCapture] = None,
        playback: Optional[SpeechPlayback] = None,
    ):
        self.user_id = user_id
        self.registry = registry
        self.progress = progress
        self.settings = settings or Settings()
        self.capture = capture or UnavailableCapture()
        self.playback = playback or SilentPlayback()
        self.session: Optional[QuizSession] = None
        self.pending_update: Optional[ProgressUpdate] = None
        self.last_error: Optional[str] = None
        self._warned_unsupported = False

        self.progress.ensure_user(user_id, registry.numbers())

    # --- Session lifecycle ---

    def start(self, level_number: int) -> QuizSession:
        level = self.registry.get_level(level_number)
        if self.progress.status_of(self.user_id, level_number) is ProgressStatus.LOCKED:
            raise LevelLockedError("Complete previous levels to unlock this one!")

        # An unsaved outcome from the previous attempt must be written first.
        if not self._persist():
            logger.warning(
                "unsaved_outcome_blocks_start",
                user_id=self.user_id,
                level_number=self.pending_update.level_number,
                error=self.last_error,
            )
            raise PersistenceFailure(f"Previous result is not saved yet: {self.last_error}")

        self.session = QuizSession.start(level, mistake_limit=self.settings.quiz.mistake_limit)
        logger.info(
            "session_started",
            user_id=self.user_id,
            level_number=level.number,
            questions=level.question_count,
        )
        return self.session

    def _require_session(self) -> QuizSession:
        if self.session is None:
            raise InvalidSessionTransition("No quiz session in progress")
        return self.session

    def submit_answer(self, option: str) -> AnswerResult:
        session = self._require_session()
        result = session.submit_answer(option)
        if result.finished:
            self._on_finished(session)
        return result

    def submit_utterance(self, utterance: str) -> UtteranceResult:
        session = self._require_session()
        question = session.current_question
        if question is None:
            raise InvalidSessionTransition("Session is already finished")

        match = find_best_match(utterance, question.options, threshold=self.settings.quiz.match_threshold)
        if match is None:
            logger.info("utterance_unmatched", user_id=self.user_id, question_id=question.id, utterance=utterance)
            return NoConfidentMatch(utterance=utterance)
        return SpokenAnswer(match=match, answer=self.submit_answer(match.option))

    async def listen(self) -> ListenResult:
        """Capture one utterance and submit it.

        Callers check ``speech_supported`` first; listening with speech
        disabled or without a working capture raises UnsupportedCapability.
        """
        self._require_session()
        if not self.speech_supported:
            raise UnsupportedCapability(UNSUPPORTED_SPEECH_MESSAGE)
        result = await self.capture.capture()
        if isinstance(result, CaptureError):
            logger.info("capture_failed", user_id=self.user_id, kind=result.kind.value, message=result.message)
            return result
        return self.submit_utterance(result.text)

    # --- Speech ---

    @property
    def speech_supported(self) -> bool:
        return self.settings.speech.enabled and self.capture.is_supported()

    def capability_warning(self) -> Optional[str]:
        """Warn once per runner when speech input is unavailable.

        Speech turned off in the settings is a choice, not a missing
        capability, so it produces no warning.
        """
        if not self.settings.speech.enabled:
            return None
        if self.speech_supported or self._warned_unsupported:
            return None
        self._warned_unsupported = True
        logger.warning("speech_capture_unsupported", user_id=self.user_id)
        return UNSUPPORTED_SPEECH_MESSAGE

    async def speak_current(self) -> bool:
        """Read the current question aloud. Playback failures never end the session."""
        if self.session is None or self.session.current_question is None:
            return False
        if not self.settings.speech.enabled or not self.playback.is_supported():
            return False
        try:
            await self.playback.speak(self.session.current_question.text)
        except Exception as e:
            logger.warning("playback_failed", user_id=self.user_id, error=str(e))
            return False
        return True

    # --- Persistence ---

    def _on_finished(self, session: QuizSession) -> None:
        outcome = session.outcome()
        logger.info(
            "session_finished",
            user_id=self.user_id,
            level_number=session.level.number,
            outcome=outcome.result.value,
            score=outcome.score,
            mistakes=session.mistakes,
        )
        self.pending_update = session.take_progress_update()
        self._persist()

    def _persist(self) -> bool:
        if self.pending_update is None:
            return True
        try:
            self.progress.apply_update(self.user_id, self.pending_update)
        except PersistenceFailure as e:
            # Keep the update so the user can retry.
            self.last_error = str(e)
            logger.warning(
                "progress_update_pending",
                user_id=self.user_id,
                level_number=self.pending_update.level_number,
                error=self.last_error,
            )
            return False
        self.pending_update = None
        self.last_error = None
        return True

    def retry_persist(self) -> bool:
        """Re-attempt a progress write that failed earlier."""
        return self._persist()
