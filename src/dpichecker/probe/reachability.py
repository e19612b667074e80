# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Preliminary reachability check gating the probe suite."""

from __future__ import annotations

import logging
import time

from ..errors import FetchError, UnexpectedStatus
from ..http.client import Fetcher
from ..models import LogEvent, LogLevel, format_elapsed
from ..sink import ResultSink

logger = logging.getLogger(__name__)

NETWORK_PREFIX = "Network checking"


async def check_reachability(fetcher: Fetcher, url: str, sink: ResultSink, *, timeout: float | None = None) -> bool:
    """
    Fetch `url` and drain it completely within the deadline.

    Only a 2xx response counts; no threshold or streaming classification applies.
    """
    started = time.perf_counter()
    try:
        async with fetcher.open(url, timeout=timeout) as stream:
            if not stream.ok:
                raise UnexpectedStatus(url, stream.status_code)
            async for _ in stream:
                pass
            await stream.disarm()
    except FetchError as exc:
        elapsed = format_elapsed((time.perf_counter() - started) * 1000.0)
        logger.info("reachability check against %s failed: %s", url, exc)
        sink.on_log(LogEvent(LogLevel.ERR, f"FAILED ({elapsed})", prefix=NETWORK_PREFIX))
        return False

    elapsed = format_elapsed((time.perf_counter() - started) * 1000.0)
    sink.on_log(LogEvent(LogLevel.INFO, f"OK ({elapsed})", prefix=NETWORK_PREFIX))
    return True
