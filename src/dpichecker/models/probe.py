# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe spec/state models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from typing import Any

from ..errors import ErrorCategory


class ProbeStatus(str, Enum):
    CHECKING = "checking"
    OK = "ok"
    BAD = "bad"
    WARNING = "warning"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ProbeStatus.CHECKING


STATUS_TEXT_CHECKING = "Checking ⏰"
STATUS_TEXT_OK = "Not detected ✅"
STATUS_TEXT_WARNING = "Possibly detected ⚠️"
STATUS_TEXT_BAD_READ = "Detected❗️"
STATUS_TEXT_BAD_CONN = "Detected*❗️"
STATUS_TEXT_FAILED = "Failed to complete detection ⚠️"


@dataclass(frozen=True)
class ProbeSpec:
    """One expanded catalogue entry: a single probe against a single URL."""

    id: str
    provider: str
    url: str
    repeat_index: int = 0


@dataclass
class ProbeState:
    """Mutable verdict of one probe; owned by its ProbeEngine until terminal."""

    id: str
    provider: str
    status: ProbeStatus = ProbeStatus.CHECKING
    status_text: str = STATUS_TEXT_CHECKING
    http_status: int | None = None
    category: ErrorCategory = ErrorCategory.NONE
    received_bytes: int = 0
    elapsed_ms: float | None = None
    detail: str | None = None

    @classmethod
    def for_spec(cls, spec: ProbeSpec) -> ProbeState:
        return cls(id=spec.id, provider=spec.provider)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def record_http_status(self, status_code: int) -> bool:
        """Set the observed HTTP status; only the first observation is kept."""
        if self.http_status is not None:
            return False
        self.http_status = status_code
        return True

    def transition(self, status: ProbeStatus, status_text: str, **changes: Any) -> dict[str, Any]:
        """
        Move to a terminal status and return the applied changes.

        Raises ValueError when the probe already reached a terminal status.
        """
        if self.is_terminal:
            raise ValueError(f"probe {self.id} is already terminal ({self.status.value})")
        if not status.is_terminal:
            raise ValueError(f"{status.value} is not a terminal status")
        applied: dict[str, Any] = {"status": status, "status_text": status_text}
        applied.update(changes)
        for key, value in applied.items():
            setattr(self, key, value)
        return applied

    def apply(self, changes: dict[str, Any]) -> None:
        """Apply a partial update received from a probe; terminal states are left untouched."""
        if self.is_terminal:
            return
        for key, value in changes.items():
            if key == "http_status" and value is not None:
                self.record_http_status(value)
            elif key in _STATE_FIELDS:
                setattr(self, key, value)

    def snapshot(self) -> ProbeState:
        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["category"] = self.category.value
        return data


_STATE_FIELDS = frozenset(f.name for f in fields(ProbeState))
