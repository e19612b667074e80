# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Run-level models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .events import LogEvent
from .probe import ProbeState, ProbeStatus


class NetworkStatus(str, Enum):
    READY = "ready"
    CHECKING = "checking"
    UNREACHABLE = "unreachable"


NETWORK_TEXT_READY = "Ready ⚡"
NETWORK_TEXT_CHECKING = "Checking ⏰"
NETWORK_TEXT_UNREACHABLE = "No internet access ⚠️"

NETWORK_STATUS_TEXT = {
    NetworkStatus.READY: NETWORK_TEXT_READY,
    NetworkStatus.CHECKING: NETWORK_TEXT_CHECKING,
    NetworkStatus.UNREACHABLE: NETWORK_TEXT_UNREACHABLE,
}


@dataclass
class RunOutcome:
    """Result of one orchestrator run."""

    status: NetworkStatus
    status_text: str
    results: list[ProbeState] = field(default_factory=list)
    logs: list[LogEvent] = field(default_factory=list)
    stopped: bool = False

    @property
    def reachable(self) -> bool:
        return self.status is not NetworkStatus.UNREACHABLE

    def counts(self) -> dict[str, int]:
        """Number of probes per status, including zero entries."""
        tally = {status.value: 0 for status in ProbeStatus}
        for state in self.results:
            tally[state.status.value] += 1
        return tally

    def result(self, probe_id: str) -> ProbeState | None:
        for state in self.results:
            if state.id == probe_id:
                return state
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "status_text": self.status_text,
            "stopped": self.stopped,
            "counts": self.counts(),
            "results": [state.to_dict() for state in self.results],
            "logs": [event.to_dict() for event in self.logs],
        }
