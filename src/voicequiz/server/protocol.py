"""JSON-lines envelopes between the quiz server and a front end.

One JSON object per line. Requests carry a quiz intent (``listLevels``,
``startSession``, ``submitAnswer``, ``submitUtterance``, ...) and get exactly
one Response with the same id. The server also pushes a ``question``
Notification whenever a new question is presented.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Request:
    """A quiz intent, e.g. ``{"method": "submitUtterance", "params": {"utterance": "menu"}}``.

    ``params`` may name a ``userId``; without one the request acts for the
    local learner.
    """
    id: int
    method: str
    params: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> Request:
        return cls(
            id=data.get("id", 0),
            method=data["method"],
            params=data.get("params") or {},
        )

    @classmethod
    def from_json_line(cls, line: str) -> Request:
        return cls.from_dict(json.loads(line))


@dataclass
class Response:
    """Result dict of a quiz intent, or the error that refused it.

    Failures carry ``errorKind`` so a front end can tell a locked level from
    an unsaved result (``LevelLockedError`` vs ``PersistenceFailure``).
    """
    id: int
    result: Optional[dict] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None  # exception class name, e.g. "PersistenceFailure"

    @classmethod
    def failure(cls, req_id: int, exc: Exception) -> Response:
        return cls(id=req_id, error=str(exc), error_kind=type(exc).__name__)

    def to_json_line(self) -> str:
        d: dict = {"id": self.id}
        if self.error is not None:
            d["error"] = self.error
            if self.error_kind:
                d["errorKind"] = self.error_kind
        else:
            d["result"] = self.result
        return json.dumps(d) + "\n"


@dataclass
class Notification:
    """Pushed by the server without a request id.

    ``question`` carries ``levelNumber``, ``index`` and the question with its
    options, sent each time a session moves to a new question.
    """
    method: str
    params: dict = field(default_factory=dict)

    def to_json_line(self) -> str:
        return json.dumps({"method": self.method, "params": self.params}) + "\n"
