# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
dpichecker package entrypoint.

This package detects "TCP 16-20" interference: connections reset or stalled by
middleboxes after the first few TCP segments. Concurrent HTTP probes stream
payloads from known endpoints and each probe is classified from its timing and
byte delivery. HTTP behavior is abstracted behind an injectable fetcher, and
domain objects are modeled with typed dataclasses.
"""

from .catalogue import DEFAULT_CATALOGUE, CatalogueEntry, expand_catalogue, load_catalogue
from .config import ProbeSettings, load_probe_settings
from .errors import ErrorCategory, FetchTimeout, TransportError
from .http import Fetcher, HttpxFetcher, create_default_fetcher
from .log import setup_logging
from .models import LogEvent, LogLevel, NetworkStatus, ProbeSpec, ProbeState, ProbeStatus, RunOutcome
from .probe import ProbeEngine
from .runtime import DPIChecker
from .scan import ProbeOrchestrator
from .sink import LoggingSink, MemorySink, MultiSink, ResultSink
from .version import __version__

__all__ = [
    "CatalogueEntry",
    "DEFAULT_CATALOGUE",
    "DPIChecker",
    "ErrorCategory",
    "FetchTimeout",
    "Fetcher",
    "HttpxFetcher",
    "LogEvent",
    "LogLevel",
    "LoggingSink",
    "MemorySink",
    "MultiSink",
    "NetworkStatus",
    "ProbeEngine",
    "ProbeOrchestrator",
    "ProbeSettings",
    "ProbeSpec",
    "ProbeState",
    "ProbeStatus",
    "ResultSink",
    "RunOutcome",
    "TransportError",
    "create_default_fetcher",
    "expand_catalogue",
    "load_catalogue",
    "load_probe_settings",
    "setup_logging",
    "__version__",
]
