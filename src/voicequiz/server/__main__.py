"""VoiceQuiz JSON-lines server entry point.

Usage: python -m voicequiz.server

Reads JSON requests from stdin (one per line), writes JSON responses to stdout.
Logs go to stderr to keep the protocol clean.
"""

from __future__ import annotations

import asyncio
import json
import sys

import structlog

from voicequiz.config.logging import configure_logging
from voicequiz.config.settings import Settings
from voicequiz.engine.errors import QuizError

from .handler import ServerHandler
from .protocol import Notification, Request, Response

logger = structlog.get_logger("voicequiz.server")


async def main() -> None:
    settings = Settings.load()
    configure_logging(settings.log_level)
    loop = asyncio.get_running_loop()

    def write_line(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    def write_notification(notification: Notification) -> None:
        write_line(notification.to_json_line())

    handler = ServerHandler(settings=settings, write_notification=write_notification)
    logger.info("server_ready", levels=len(handler.registry.list_levels()))

    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)

    while True:
        line = await reader.readline()
        if not line:
            break  # stdin closed

        line_str = line.decode("utf-8", errors="replace").strip()
        if not line_str:
            continue

        try:
            request = Request.from_json_line(line_str)
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            write_line(Response(id=0, error=f"Invalid request: {e}", error_kind="InvalidRequest").to_json_line())
            continue

        try:
            result = await handler.dispatch({"method": request.method, "params": request.params})
            resp = Response(id=request.id, result=result)
        except QuizError as e:
            logger.info("request_rejected", method=request.method, error=str(e), kind=type(e).__name__)
            resp = Response.failure(request.id, e)
        except Exception as e:
            logger.exception("request_failed", method=request.method)
            resp = Response.failure(request.id, e)

        write_line(resp.to_json_line())


if __name__ == "__main__":
    asyncio.run(main())
