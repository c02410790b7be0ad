"""Speech capture and playback collaborators.

Capture results are values, not exceptions: a capture yields either a
``Transcript`` or a ``CaptureError``. Callers check ``is_supported()``
before offering speech input at all.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol, Union


class CaptureErrorKind(str, Enum):
    UNSUPPORTED = "unsupported"
    NO_SPEECH = "no_speech"
    FAILED = "failed"


@dataclass(frozen=True)
class Transcript:
    text: str


@dataclass(frozen=True)
class CaptureError:
    kind: CaptureErrorKind
    message: str = ""


CaptureResult = Union[Transcript, CaptureError]


class SpeechCapture(Protocol):
    def is_supported(self) -> bool: ...

    async def capture(self) -> CaptureResult: ...


class SpeechPlayback(Protocol):
    def is_supported(self) -> bool: ...

    async def speak(self, text: str) -> None: ...


class PromptCapture:
    """Treats a line read from ``read_line`` as the recognized utterance.

    ``read_line`` is blocking (e.g. ``input``), so it runs in a worker thread.
    """

    def __init__(self, read_line: Callable[[], str]):
        self._read_line = read_line

    def is_supported(self) -> bool:
        return True

    async def capture(self) -> CaptureResult:
        try:
            text = await asyncio.to_thread(self._read_line)
        except EOFError:
            return CaptureError(CaptureErrorKind.NO_SPEECH, "Input closed")
        if not text.strip():
            return CaptureError(CaptureErrorKind.NO_SPEECH, "Nothing was heard")
        return Transcript(text=text)


class UnavailableCapture:
    def is_supported(self) -> bool:
        return False

    async def capture(self) -> CaptureResult:
        return CaptureError(CaptureErrorKind.UNSUPPORTED, "Speech recognition is not available")


class EchoPlayback:
    """Plays text by writing it to ``sink``."""

    def __init__(self, sink: Callable[[str], None], prefix: str = "🔊 "):
        self._sink = sink
        self._prefix = prefix

    def is_supported(self) -> bool:
        return True

    async def speak(self, text: str) -> None:
        self._sink(f"{self._prefix}{text}")


class SilentPlayback:
    def is_supported(self) -> bool:
        return False

    async def speak(self, text: str) -> None:
        return None


def describe_capture_error(error: CaptureError) -> str:
    if error.kind is CaptureErrorKind.UNSUPPORTED:
        return "Speech recognition is not supported here. Please select an option instead."
    if error.kind is CaptureErrorKind.NO_SPEECH:
        return "Could not recognize speech. Please try again."
    if error.message:
        return f"Speech capture failed: {error.message}"
    return "Speech capture failed."
