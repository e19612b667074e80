# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Structured log events emitted by probes and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class LogLevel(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERR = "ERR"


@dataclass(frozen=True)
class LogEvent:
    level: LogLevel
    message: str
    prefix: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def clock(self) -> str:
        """Wall-clock time as HH:MM:SS.mmm."""
        return f"{self.timestamp:%H:%M:%S}.{self.timestamp.microsecond // 1000:03d}"

    def format(self) -> str:
        head = f"{self.clock} {self.prefix}" if self.prefix else self.clock
        return f"{head} {self.level.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.clock,
            "level": self.level.value,
            "prefix": self.prefix,
            "message": self.message,
        }


def format_elapsed(elapsed_ms: float) -> str:
    return f"{elapsed_ms:.1f} ms"


__all__ = ["LogEvent", "LogLevel", "format_elapsed"]
