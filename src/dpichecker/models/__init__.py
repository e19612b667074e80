# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for dpichecker."""

from .events import LogEvent, LogLevel, format_elapsed
from .probe import ProbeSpec, ProbeState, ProbeStatus
from .run import NETWORK_STATUS_TEXT, NetworkStatus, RunOutcome

__all__ = [
    "LogEvent",
    "LogLevel",
    "NETWORK_STATUS_TEXT",
    "NetworkStatus",
    "ProbeSpec",
    "ProbeState",
    "ProbeStatus",
    "RunOutcome",
    "format_elapsed",
]
