# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-run session: the results and logs of exactly one orchestrator run."""

from __future__ import annotations

from typing import Any

from ..models import LogEvent, NetworkStatus, ProbeState, RunOutcome
from ..sink import MemorySink, ResultSink
from ..utils.cancel import CancelToken


class RunSession(MemorySink):
    """
    Records one run and forwards every event to the caller's sink.

    A session is created when a run starts and discarded once the run is terminal;
    nothing is shared between runs.
    """

    def __init__(self, sink: ResultSink | None = None):
        super().__init__()
        self.sink = sink
        self.token = CancelToken()
        self.order: list[str] = []

    @property
    def stopped(self) -> bool:
        return self.token.cancelled

    def on_probe_created(self, state: ProbeState) -> None:
        super().on_probe_created(state)
        self.order.append(state.id)
        if self.sink is not None:
            self.sink.on_probe_created(state.snapshot())

    def on_probe_updated(self, probe_id: str, changes: dict[str, Any]) -> None:
        super().on_probe_updated(probe_id, changes)
        if self.sink is not None:
            self.sink.on_probe_updated(probe_id, dict(changes))

    def on_log(self, event: LogEvent) -> None:
        super().on_log(event)
        if self.sink is not None:
            self.sink.on_log(event)

    def on_overall_status_changed(self, status: NetworkStatus, status_text: str) -> None:
        super().on_overall_status_changed(status, status_text)
        if self.sink is not None:
            self.sink.on_overall_status_changed(status, status_text)

    def outcome(self, status: NetworkStatus, status_text: str) -> RunOutcome:
        return RunOutcome(
            status=status,
            status_text=status_text,
            results=[self.states[probe_id].snapshot() for probe_id in self.order],
            logs=list(self.logs),
            stopped=self.stopped,
        )
