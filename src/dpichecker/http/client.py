# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Fetcher abstraction and factory."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Protocol

from ..config import ProbeSettings, load_probe_settings

if TYPE_CHECKING:
    from .httpx_client import FetchStream


class Fetcher(Protocol):
    """Minimal protocol for issuing deadline-bound GET requests."""

    def open(self, url: str, *, timeout: float | None = None) -> AbstractAsyncContextManager[FetchStream]: ...

    async def aclose(self) -> None:  # pragma: no cover - optional for adapters
        ...


def create_default_fetcher(settings: ProbeSettings | None = None) -> Fetcher:
    """Factory for the default httpx-backed fetcher."""
    from .httpx_client import HttpxFetcher

    return HttpxFetcher(settings or load_probe_settings())
