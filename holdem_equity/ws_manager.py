"""WebSocket sessions that stream equity progress and results."""

from __future__ import annotations

import asyncio
import json
import logging
import time
import uuid
from typing import Optional

from fastapi import WebSocket
from pydantic import ValidationError

from holdem_equity.errors import ComputationFailure, InvalidInput
from holdem_equity.models import EquityRequest, EquityResult
from holdem_equity.worker import EquityWorker

logger = logging.getLogger(__name__)

_CLOSE = None  # outbox sentinel


class EquitySession:
    """Binds one WebSocket to one EquityWorker.

    Worker callbacks run on the event loop, so they only queue messages; a
    single ``pump()`` task writes them to the socket in order.
    """

    def __init__(self, ws: WebSocket) -> None:
        self.ws = ws
        self.session_id = uuid.uuid4().hex[:12]
        self.last_ping = time.time()
        self._outbox: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self.worker = EquityWorker(
            on_progress=self._on_progress,
            on_result=self._on_result,
            on_error=self._on_error,
        )

    async def send(self, text: str) -> bool:
        """Send text, returning False on failure."""
        try:
            await self.ws.send_text(text)
            return True
        except Exception:
            logger.debug("Send failed for session %s", self.session_id, exc_info=True)
            return False

    def queue(self, message: dict) -> None:
        self._outbox.put_nowait(json.dumps(message))

    async def pump(self) -> None:
        """Forward queued messages until the session closes or the socket dies."""
        while True:
            text = await self._outbox.get()
            if text is _CLOSE or not await self.send(text):
                return

    def close(self) -> None:
        self.worker.cancel()
        self._outbox.put_nowait(_CLOSE)

    # ------------------------------------------------------------------
    # Client messages
    # ------------------------------------------------------------------

    def handle_message(self, raw: str) -> None:
        try:
            msg = json.loads(raw)
            msg_type = msg.get("type", "")
        except (json.JSONDecodeError, AttributeError):
            return  # ignore malformed messages

        if msg_type == "calculate":
            self.calculate({k: v for k, v in msg.items() if k != "type"})
        elif msg_type == "cancel":
            self.worker.cancel()
        elif msg_type == "ping":
            self.last_ping = time.time()
            self.queue({"type": "pong", "ts": self.last_ping})

    def calculate(self, payload: dict) -> None:
        try:
            request = EquityRequest.model_validate(payload)
            self.worker.start(request)
        except ValidationError as e:
            self._send_error("invalid_input", _validation_detail(e))
        except InvalidInput as e:
            self._send_error("invalid_input", str(e))

    # ------------------------------------------------------------------
    # Worker callbacks
    # ------------------------------------------------------------------

    def _on_progress(self, fraction: float) -> None:
        self.queue({"type": "progress", "progress": fraction})

    def _on_result(self, result: EquityResult) -> None:
        self.queue({"type": "result", "data": result.model_dump()})

    def _on_error(self, error: ComputationFailure) -> None:
        self._send_error("computation_failure", str(error))

    def _send_error(self, kind: str, detail: str) -> None:
        self.queue({"type": "error", "kind": kind, "detail": detail})


def _validation_detail(e: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
    )


class SessionManager:
    """Tracks open equity sessions."""

    def __init__(self) -> None:
        self._sessions: dict[str, EquitySession] = {}

    async def connect(self, ws: WebSocket) -> EquitySession:
        await ws.accept()
        session = EquitySession(ws)
        self._sessions[session.session_id] = session
        logger.info("WS connect: session=%s", session.session_id)
        return session

    def disconnect(self, session: EquitySession) -> None:
        session.close()
        if self._sessions.pop(session.session_id, None) is not None:
            logger.info("WS disconnect: session=%s", session.session_id)

    @property
    def session_count(self) -> int:
        return len(self._sessions)


manager = SessionManager()
