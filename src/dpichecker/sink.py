# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Result/log sinks consumed by the probe engine and the orchestrator."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from .models import LogEvent, LogLevel, NetworkStatus, ProbeState


class ResultSink(Protocol):
    """Presentation-layer interface; all calls happen on the event loop thread."""

    def on_probe_created(self, state: ProbeState) -> None: ...

    def on_probe_updated(self, probe_id: str, changes: dict[str, Any]) -> None: ...

    def on_log(self, event: LogEvent) -> None: ...

    def on_overall_status_changed(self, status: NetworkStatus, status_text: str) -> None: ...


class MemorySink(ResultSink):
    """Records every event; updates to terminal probes are ignored."""

    def __init__(self) -> None:
        self.states: dict[str, ProbeState] = {}
        self.logs: list[LogEvent] = []
        self.status_history: list[tuple[NetworkStatus, str]] = []

    def on_probe_created(self, state: ProbeState) -> None:
        self.states[state.id] = state.snapshot()

    def on_probe_updated(self, probe_id: str, changes: dict[str, Any]) -> None:
        state = self.states.get(probe_id)
        if state is not None:
            state.apply(changes)

    def on_log(self, event: LogEvent) -> None:
        self.logs.append(event)

    def on_overall_status_changed(self, status: NetworkStatus, status_text: str) -> None:
        self.status_history.append((status, status_text))


_LOG_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERR: logging.ERROR,
}


class LoggingSink(ResultSink):
    """Forwards the event stream to the standard logging module."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("dpichecker.events")

    def on_probe_created(self, state: ProbeState) -> None:
        self.logger.debug("probe %s (%s) created", state.id, state.provider)

    def on_probe_updated(self, probe_id: str, changes: dict[str, Any]) -> None:
        status = changes.get("status")
        if status is not None:
            self.logger.info("probe %s -> %s (%s)", probe_id, status.value, changes.get("status_text", ""))
        else:
            self.logger.debug("probe %s updated: %s", probe_id, changes)

    def on_log(self, event: LogEvent) -> None:
        if event.prefix:
            self.logger.log(_LOG_LEVELS[event.level], "%s: %s", event.prefix, event.message)
        else:
            self.logger.log(_LOG_LEVELS[event.level], "%s", event.message)

    def on_overall_status_changed(self, status: NetworkStatus, status_text: str) -> None:
        self.logger.info("network status: %s (%s)", status.value, status_text)


class MultiSink(ResultSink):
    """Fans every event out to several sinks, in order."""

    def __init__(self, sinks: Iterable[ResultSink]):
        self.sinks = list(sinks)

    def on_probe_created(self, state: ProbeState) -> None:
        for sink in self.sinks:
            sink.on_probe_created(state.snapshot())

    def on_probe_updated(self, probe_id: str, changes: dict[str, Any]) -> None:
        for sink in self.sinks:
            sink.on_probe_updated(probe_id, dict(changes))

    def on_log(self, event: LogEvent) -> None:
        for sink in self.sinks:
            sink.on_log(event)

    def on_overall_status_changed(self, status: NetworkStatus, status_text: str) -> None:
        for sink in self.sinks:
            sink.on_overall_status_changed(status, status_text)


__all__ = ["LoggingSink", "MemorySink", "MultiSink", "ResultSink"]
