# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe orchestrator: reachability gate followed by the concurrent probe suite."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Iterable
from typing import Any

from ..catalogue import DEFAULT_CATALOGUE, CatalogueEntry, expand_catalogue, validate_catalogue
from ..config import ProbeSettings, load_probe_settings
from ..errors import OrchestratorBusyError
from ..http.client import Fetcher
from ..models import NETWORK_STATUS_TEXT, LogEvent, LogLevel, NetworkStatus, ProbeState, RunOutcome
from ..probe.engine import ProbeEngine
from ..probe.reachability import check_reachability
from ..sink import ResultSink
from ..utils.cancel import CancelToken
from .session import RunSession

logger = logging.getLogger(__name__)


class ProbeOrchestrator:
    """
    Runs the diagnostic suite once per `run()` call.

    Runs are not re-entrant: a second `run()` while one is active raises
    OrchestratorBusyError until the first finishes or `stop()` is called.
    All methods must be called from the event loop running the suite.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        settings: ProbeSettings | None = None,
        catalogue: Iterable[CatalogueEntry] | None = None,
        sink: ResultSink | None = None,
    ):
        self.fetcher = fetcher
        self.settings = settings or load_probe_settings()
        self.catalogue = validate_catalogue(catalogue if catalogue is not None else DEFAULT_CATALOGUE)
        self.sink = sink
        self.status = NetworkStatus.READY
        self.status_text = NETWORK_STATUS_TEXT[NetworkStatus.READY]
        self.engines: dict[str, ProbeEngine] = {}
        self._session: RunSession | None = None

    @property
    def running(self) -> bool:
        return self._session is not None

    async def run(self) -> RunOutcome:
        if self._session is not None:
            raise OrchestratorBusyError("a diagnostic run is already in progress")
        session = RunSession(self.sink)
        self._session = session
        self.engines = {}
        try:
            return await self._run(session)
        finally:
            if self._session is session:
                self._session = None

    def stop(self) -> None:
        """
        Abandon the active run and reset the overall status to Ready at once.

        In-flight probes are cancelled through the run token; probes that already
        reached a terminal verdict keep it, the others stay Checking.
        """
        session = self._session
        if session is None:
            return
        self._session = None
        session.token.cancel("stopped")
        self._set_status(session, NetworkStatus.READY)
        session.on_log(LogEvent(LogLevel.WARN, "Stopped."))

    async def _run(self, session: RunSession) -> RunOutcome:
        self._set_status(session, NetworkStatus.CHECKING)

        try:
            reachable = await self._spawn(
                check_reachability(self.fetcher, self.settings.reachability_url, session, timeout=self.settings.timeout),
                session.token.child(),
            )
        except Exception:  # noqa: BLE001
            logger.exception("reachability check against %s aborted", self.settings.reachability_url)
            reachable = False
        if session.stopped:
            return session.outcome(NetworkStatus.READY, NETWORK_STATUS_TEXT[NetworkStatus.READY])

        if reachable is not True:
            self._set_status(session, NetworkStatus.UNREACHABLE)
            session.on_log(LogEvent(LogLevel.INFO, "Done."))
            return session.outcome(self.status, self.status_text)

        specs = expand_catalogue(self.catalogue)
        engines = [
            ProbeEngine(spec, self.fetcher, session, settings=self.settings, token=session.token.child())
            for spec in specs
        ]
        self.engines = {engine.spec.id: engine for engine in engines}
        limiter = asyncio.Semaphore(self.settings.max_concurrency) if self.settings.max_concurrency else None
        logger.debug("starting %d probes (concurrency cap: %s)", len(engines), self.settings.max_concurrency)

        # Probes never raise into the join; a cancelled probe yields CancelledError here.
        await asyncio.gather(*(self._run_probe(engine, limiter) for engine in engines), return_exceptions=True)

        if session.stopped:
            return session.outcome(NetworkStatus.READY, NETWORK_STATUS_TEXT[NetworkStatus.READY])
        self._set_status(session, NetworkStatus.READY)
        session.on_log(LogEvent(LogLevel.INFO, "Done."))
        return session.outcome(self.status, self.status_text)

    @staticmethod
    async def _run_probe(engine: ProbeEngine, limiter: asyncio.Semaphore | None) -> ProbeState:
        task = asyncio.current_task()
        if task is not None:
            engine.token.bind(task)
        if limiter is None:
            return await engine.run()
        async with limiter:
            return await engine.run()

    @staticmethod
    async def _spawn(coro: Coroutine[Any, Any, Any], token: CancelToken) -> Any:
        task = asyncio.create_task(coro)
        token.bind(task)
        (result,) = await asyncio.gather(task, return_exceptions=True)
        if isinstance(result, Exception):
            raise result
        return result

    def _set_status(self, session: RunSession, status: NetworkStatus) -> None:
        self.status = status
        self.status_text = NETWORK_STATUS_TEXT[status]
        session.on_overall_status_changed(status, self.status_text)
