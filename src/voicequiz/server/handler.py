"""Server handler: dispatches JSON-lines requests to quiz runners."""

from __future__ import annotations

from typing import Callable, Optional

import structlog

from voicequiz.config.settings import Settings
from voicequiz.engine.errors import InvalidSessionTransition
from voicequiz.engine.quiz_runner import NoConfidentMatch, QuizRunner
from voicequiz.engine.session import AnswerResult, QuizSession, question_to_dict
from voicequiz.levels.registry import LevelRegistry
from voicequiz.state.progress import ProgressStore

from .protocol import Notification

logger = structlog.get_logger("voicequiz.server.handler")

DEFAULT_USER = "local"


def _answer_to_dict(answer: AnswerResult) -> dict:
    return {
        "correct": answer.correct,
        "submitted": answer.submitted,
        "correctAnswer": answer.correct_answer,
        "finished": answer.finished,
    }


class ServerHandler:
    """Routes incoming requests to the caller's QuizRunner and returns result dicts."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        write_notification: Optional[Callable[[Notification], None]] = None,
    ):
        self.settings = settings or Settings.load()
        self._write_notification = write_notification or (lambda n: None)

        self.registry = LevelRegistry(self.settings.levels_dir)
        self.progress = ProgressStore(db_path=self.settings.progress_db)
        self._runners: dict[str, QuizRunner] = {}

    async def dispatch(self, msg: dict) -> dict:
        """Route a request message to the appropriate handler method."""
        method = msg.get("method", "")
        params = msg.get("params") or {}

        handler_map = {
            "listLevels": self._list_levels,
            "startSession": self._start_session,
            "getSession": self._get_session,
            "submitAnswer": self._submit_answer,
            "submitUtterance": self._submit_utterance,
            "getOutcome": self._get_outcome,
            "retryPersist": self._retry_persist,
            "resetProgress": self._reset_progress,
        }

        handler = handler_map.get(method)
        if handler is None:
            raise ValueError(f"Unknown method: {method}")

        return await handler(params)

    def _runner_for(self, params: dict) -> QuizRunner:
        user_id = params.get("userId", DEFAULT_USER)
        runner = self._runners.get(user_id)
        if runner is None:
            runner = QuizRunner(
                user_id=user_id,
                registry=self.registry,
                progress=self.progress,
                settings=self.settings,
            )
            self._runners[user_id] = runner
        return runner

    def _active_session(self, params: dict) -> tuple[QuizRunner, QuizSession]:
        runner = self._runner_for(params)
        if runner.session is None:
            raise InvalidSessionTransition("No quiz session in progress")
        return runner, runner.session

    def _announce_question(self, session: QuizSession) -> None:
        question = session.current_question
        if question is None:
            return
        self._write_notification(
            Notification(
                "question",
                {
                    "levelNumber": session.level.number,
                    "index": session.current_index,
                    "question": question_to_dict(question),
                },
            )
        )

    def _session_payload(self, runner: QuizRunner) -> dict:
        session = runner.session
        payload = {"session": session.to_dict() if session else None}
        if session is not None and session.is_terminal:
            outcome = session.outcome()
            payload["outcome"] = {"result": outcome.result.value, "score": outcome.score}
            payload["saved"] = runner.pending_update is None
            if runner.last_error:
                payload["saveError"] = runner.last_error
        return payload

    async def _list_levels(self, params: dict) -> dict:
        runner = self._runner_for(params)
        records = {r.level_number: r for r in self.progress.list_for_user(runner.user_id)}
        levels = []
        for level in self.registry.list_levels():
            record = records.get(level.number)
            levels.append({
                "id": level.id,
                "number": level.number,
                "title": level.title,
                "theme": level.theme,
                "imageUrl": level.image_url,
                "questionCount": level.question_count,
                "status": record.status.value if record else "locked",
                "highScore": record.high_score if record else 0,
            })
        return {"levels": levels}

    async def _start_session(self, params: dict) -> dict:
        runner = self._runner_for(params)
        session = runner.start(int(params["levelNumber"]))
        self._announce_question(session)

        result = self._session_payload(runner)
        warning = runner.capability_warning()
        if warning:
            result["warning"] = warning
        return result

    async def _get_session(self, params: dict) -> dict:
        runner, _ = self._active_session(params)
        return self._session_payload(runner)

    async def _submit_answer(self, params: dict) -> dict:
        runner, session = self._active_session(params)
        answer = runner.submit_answer(params["option"])
        if not answer.finished:
            self._announce_question(session)

        result = self._session_payload(runner)
        result["answer"] = _answer_to_dict(answer)
        return result

    async def _submit_utterance(self, params: dict) -> dict:
        runner, session = self._active_session(params)
        spoken = runner.submit_utterance(params["utterance"])
        if isinstance(spoken, NoConfidentMatch):
            result = self._session_payload(runner)
            result["matched"] = False
            result["message"] = "Unrecognized answer. Please try again or select an option."
            return result

        if not spoken.answer.finished:
            self._announce_question(session)
        result = self._session_payload(runner)
        result["matched"] = True
        result["match"] = {"option": spoken.match.option, "score": spoken.match.score}
        result["answer"] = _answer_to_dict(spoken.answer)
        return result

    async def _get_outcome(self, params: dict) -> dict:
        _, session = self._active_session(params)
        outcome = session.outcome()
        return {"result": outcome.result.value, "score": outcome.score}

    async def _retry_persist(self, params: dict) -> dict:
        runner, _ = self._active_session(params)
        saved = runner.retry_persist()
        return {"saved": saved, "error": runner.last_error}

    async def _reset_progress(self, params: dict) -> dict:
        runner = self._runner_for(params)
        level_number = params.get("levelNumber")
        if level_number is None:
            self.progress.reset_user(runner.user_id)
        else:
            self.progress.reset_level(runner.user_id, int(level_number))
        self.progress.ensure_user(runner.user_id, self.registry.numbers())
        runner.session = None
        runner.pending_update = None
        runner.last_error = None
        logger.info("progress_reset", user_id=runner.user_id, level_number=level_number)
        return {"ok": True}
