# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Probe engine: one streaming GET raced against a deadline, classified into a verdict.

State machine (Checking is the only non-terminal state):

    Checking -> Ok        threshold reached before the deadline
    Checking -> Warning   stream ended naturally below the threshold
    Checking -> Bad       deadline fired (before headers: CONN, after: READ)
    Checking -> Failed    transport error or any other fault

Reaching the threshold proves the connection outlived the interference window,
so the rest of the payload is never downloaded.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from ..config import ProbeSettings, load_probe_settings
from ..errors import ErrorCategory, FetchTimeout, categorize_exception
from ..http.client import Fetcher
from ..models import LogEvent, LogLevel, ProbeSpec, ProbeState, ProbeStatus, format_elapsed
from ..models.probe import (
    STATUS_TEXT_BAD_CONN,
    STATUS_TEXT_BAD_READ,
    STATUS_TEXT_FAILED,
    STATUS_TEXT_OK,
    STATUS_TEXT_WARNING,
)
from ..sink import ResultSink
from ..utils.cancel import CancelToken

logger = logging.getLogger(__name__)


class ProbeEngine:
    """Drives a single ProbeSpec to a terminal ProbeState; each instance runs once."""

    def __init__(
        self,
        spec: ProbeSpec,
        fetcher: Fetcher,
        sink: ResultSink,
        *,
        settings: ProbeSettings | None = None,
        token: CancelToken | None = None,
    ):
        self.spec = spec
        self.fetcher = fetcher
        self.sink = sink
        self.settings = settings or load_probe_settings()
        self.token = token or CancelToken()
        self.state = ProbeState.for_spec(spec)
        self.prefix = f"DPI checking(#{spec.id})"
        self._started: float | None = None

    def elapsed_ms(self) -> float:
        if self._started is None:
            return 0.0
        return (time.perf_counter() - self._started) * 1000.0

    def cancel(self) -> bool:
        """Abandon the probe. Cancelling a terminal probe is a no-op."""
        if self.state.is_terminal:
            return False
        return self.token.cancel("probe cancelled")

    async def run(self) -> ProbeState:
        if self._started is not None:
            raise RuntimeError(f"probe {self.spec.id} has already been started")
        task = asyncio.current_task()
        if task is not None:
            self.token.bind(task)
        self._started = time.perf_counter()
        self.sink.on_probe_created(self.state.snapshot())

        try:
            await self._stream()
        except FetchTimeout as exc:
            self._timed_out(exc)
        except asyncio.CancelledError:
            if not self.state.is_terminal:
                self._log(LogLevel.WARN, f"Probe abandoned ({format_elapsed(self.elapsed_ms())})")
            raise
        except Exception as exc:  # noqa: BLE001
            self._failed(exc)
        return self.state.snapshot()

    async def _stream(self) -> None:
        threshold = self.settings.ok_threshold_bytes
        async with self.fetcher.open(self.spec.url, timeout=self.settings.timeout) as stream:
            self._log(LogLevel.INFO, f"HTTP {stream.status_code}")
            if self.state.record_http_status(stream.status_code):
                self.sink.on_probe_updated(self.state.id, {"http_status": stream.status_code})

            async for chunk in stream:
                self.state.received_bytes += len(chunk)
                self._log(LogLevel.INFO, f"Received chunk: {len(chunk)} bytes, total: {self.state.received_bytes}")
                if self.state.received_bytes >= threshold and await stream.disarm():
                    self._log(LogLevel.INFO, f"Early complete ({format_elapsed(self.elapsed_ms())})")
                    self._finish(ProbeStatus.OK, STATUS_TEXT_OK)
                    return

            if await stream.disarm():
                self._log(LogLevel.INFO, f"Stream complete without timeout ({format_elapsed(self.elapsed_ms())})")
                self._log(LogLevel.WARN, "Stream ended but data is too small")
                self._finish(ProbeStatus.WARNING, STATUS_TEXT_WARNING, category=ErrorCategory.INSUFFICIENT_DATA)
                return

        if not self.state.is_terminal:
            raise FetchTimeout(self.spec.url, status_code=self.state.http_status)

    def _timed_out(self, exc: FetchTimeout) -> None:
        if self.state.is_terminal:
            logger.debug("probe %s: late timeout after %s ignored", self.state.id, self.state.status.value)
            return
        status_code = self.state.http_status if self.state.http_status is not None else exc.status_code
        if status_code is not None:
            reason, text, category = "READ", STATUS_TEXT_BAD_READ, ErrorCategory.READ_TIMEOUT
        else:
            reason, text, category = "CONN", STATUS_TEXT_BAD_CONN, ErrorCategory.CONNECTION_TIMEOUT
        self._log(LogLevel.ERR, f"{reason} timeout reached ({format_elapsed(self.elapsed_ms())})")
        self._finish(ProbeStatus.BAD, text, category=category, http_status=status_code)

    def _failed(self, exc: Exception) -> None:
        if self.state.is_terminal:
            logger.debug("probe %s: error after %s ignored: %r", self.state.id, self.state.status.value, exc)
            return
        self._log(LogLevel.ERR, f"Fetch/read error => {exc} ({format_elapsed(self.elapsed_ms())})")
        self._finish(
            ProbeStatus.FAILED,
            STATUS_TEXT_FAILED,
            category=categorize_exception(exc),
            detail=str(exc),
        )

    def _finish(self, status: ProbeStatus, status_text: str, **changes: Any) -> None:
        changes.setdefault("received_bytes", self.state.received_bytes)
        changes["elapsed_ms"] = round(self.elapsed_ms(), 1)
        applied = self.state.transition(status, status_text, **changes)
        logger.debug("probe %s finished: %s after %.1f ms", self.state.id, status.value, applied["elapsed_ms"])
        self.sink.on_probe_updated(self.state.id, applied)

    def _log(self, level: LogLevel, message: str) -> None:
        self.sink.on_log(LogEvent(level, message, prefix=self.prefix))
