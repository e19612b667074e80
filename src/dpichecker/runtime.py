# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level dpichecker facade for one-shot diagnostic runs."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from .catalogue import CatalogueEntry
from .config import ProbeSettings, load_probe_settings
from .errors import OrchestratorBusyError
from .http.client import Fetcher, create_default_fetcher
from .models import RunOutcome
from .scan.orchestrator import ProbeOrchestrator
from .sink import ResultSink


class DPIChecker:
    """
    Convenience wrapper that wires settings, a fetcher and the orchestrator.

    When no fetcher is injected a fresh httpx-backed one is created for each run and
    closed afterwards, so `run()` can be called repeatedly from synchronous code.
    """

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        *,
        settings: ProbeSettings | None = None,
        catalogue: Iterable[CatalogueEntry] | None = None,
        sink: ResultSink | None = None,
    ):
        self.settings = settings or load_probe_settings()
        self.catalogue = list(catalogue) if catalogue is not None else None
        self.sink = sink
        self._fetcher = fetcher
        self.orchestrator: ProbeOrchestrator | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    async def run_async(self) -> RunOutcome:
        if self.orchestrator is not None and self.orchestrator.running:
            raise OrchestratorBusyError("a diagnostic run is already in progress")
        fetcher = self._fetcher or create_default_fetcher(self.settings)
        self.orchestrator = ProbeOrchestrator(
            fetcher,
            settings=self.settings,
            catalogue=self.catalogue,
            sink=self.sink,
        )
        self._loop = asyncio.get_running_loop()
        try:
            return await self.orchestrator.run()
        finally:
            self._loop = None
            if self._fetcher is None:
                await fetcher.aclose()

    def run(self) -> RunOutcome:
        return asyncio.run(self.run_async())

    def stop(self) -> None:
        """
        Stop the active run. Safe to call from another thread while `run()` blocks.

        Task cancellation is not thread-safe, so calls from outside the run's event
        loop are handed to that loop.
        """
        orchestrator, loop = self.orchestrator, self._loop
        if orchestrator is None:
            return
        if loop is None or _running_loop() is loop:
            orchestrator.stop()
        else:
            loop.call_soon_threadsafe(orchestrator.stop)


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
