# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for dpichecker."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"dpichecker/{__version__} (TCP 16-20 interference checker)"
DEFAULT_REACHABILITY_URL = "https://one.one.one.one/favicon.ico"


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _optional_int_env(name: str, default: int | None) -> int | None:
    try:
        value = os.getenv(name)
        if value is None:
            return default
        parsed = int(value)
        return parsed if parsed > 0 else None
    except ValueError:
        return default


@dataclass
class ProbeSettings:
    """Probe tunables shared by the fetcher, the probe engine and the orchestrator."""

    timeout_ms: int = 5000
    ok_threshold_bytes: int = 64 * 1024
    reachability_url: str = DEFAULT_REACHABILITY_URL
    user_agent: str = DEFAULT_USER_AGENT
    verify_ssl: bool = True
    max_concurrency: int | None = None

    @property
    def timeout(self) -> float:
        """Deadline in seconds."""
        return self.timeout_ms / 1000.0

    @classmethod
    def from_env(cls) -> "ProbeSettings":
        """Create settings from environment variables (evaluated at call time)."""
        timeout_ms = _int_env("DPICHECKER_TIMEOUT_MS", cls.timeout_ms)
        if timeout_ms <= 0:
            timeout_ms = cls.timeout_ms
        threshold = _int_env("DPICHECKER_OK_THRESHOLD_BYTES", cls.ok_threshold_bytes)
        if threshold <= 0:
            threshold = cls.ok_threshold_bytes
        return cls(
            timeout_ms=timeout_ms,
            ok_threshold_bytes=threshold,
            reachability_url=os.getenv("DPICHECKER_REACHABILITY_URL", cls.reachability_url),
            user_agent=os.getenv("DPICHECKER_USER_AGENT", cls.user_agent),
            verify_ssl=_bool_env("DPICHECKER_VERIFY_SSL", cls.verify_ssl),
            max_concurrency=_optional_int_env("DPICHECKER_MAX_CONCURRENCY", cls.max_concurrency),
        )


def load_probe_settings() -> ProbeSettings:
    """Load probe settings from environment with sensible defaults."""
    return ProbeSettings.from_env()
