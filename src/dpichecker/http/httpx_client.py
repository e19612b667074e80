# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed deadline-bound fetcher."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx

from ..config import ProbeSettings, load_probe_settings
from ..errors import FetchTimeout, TransportError, categorize_exception
from .client import Fetcher
from .url import cache_bust_url

logger = logging.getLogger(__name__)


def _cookieless_jar() -> CookieJar:
    # An empty allow-list rejects every Set-Cookie, so no credential leaks into later probes.
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


def _describe(exc: BaseException) -> str:
    message = str(exc).strip()
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


class FetchStream:
    """
    Response status plus an async byte-chunk iterator.

    Every read runs under the deadline of the `open()` call that produced the
    stream. Empty chunks are skipped.
    """

    def __init__(self, response: httpx.Response, deadline: asyncio.Timeout):
        self.status_code: int = response.status_code
        self._response = response
        self._deadline = deadline
        self._chunks: AsyncIterator[bytes] | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    async def disarm(self) -> bool:
        """
        Cancel the pending deadline once the caller has settled its verdict.

        When the deadline already fired, the pending cancellation is delivered here
        so the fetcher raises FetchTimeout instead of the caller seeing a late success.
        """
        if self._deadline.expired():
            await asyncio.sleep(0)
            return False
        self._deadline.reschedule(None)
        return True

    def __aiter__(self) -> FetchStream:
        return self

    async def __anext__(self) -> bytes:
        if self._chunks is None:
            self._chunks = self._response.aiter_bytes()
        while True:
            chunk = await self._chunks.__anext__()
            if chunk:
                return chunk

    async def aclose(self) -> None:
        if self._chunks is not None:
            await self._chunks.aclose()
        await self._response.aclose()


class HttpxFetcher(Fetcher):
    """Single-GET fetcher with cache busting, no redirects, no cookies and a hard deadline."""

    def __init__(
        self,
        settings: ProbeSettings | None = None,
        client: httpx.AsyncClient | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or load_probe_settings()
        self._client = client or httpx.AsyncClient(
            transport=transport,
            follow_redirects=False,
            timeout=self.settings.timeout,
            verify=self.settings.verify_ssl,
            cookies=_cookieless_jar(),
        )

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.settings.user_agent,
            "Accept": "*/*",
            "Accept-Encoding": "identity",
            "Cache-Control": "no-store",
            "Pragma": "no-cache",
        }

    @asynccontextmanager
    async def open(self, url: str, *, timeout: float | None = None) -> AsyncIterator[FetchStream]:
        """
        Issue one GET against a cache-busted `url` and yield its FetchStream.

        The deadline covers connect, headers and every chunk read performed inside
        the `async with` body. Raises FetchTimeout when it fires and TransportError
        for any other network fault. Non-2xx responses are yielded like any other.
        """
        seconds = self.settings.timeout if timeout is None else timeout
        target = cache_bust_url(url)
        stream: FetchStream | None = None
        try:
            async with asyncio.timeout(seconds) as deadline:
                request = self._client.build_request("GET", target, headers=self._headers())
                response = await self._client.send(request, stream=True, follow_redirects=False)
                stream = FetchStream(response, deadline)
                logger.debug("GET %s -> HTTP %s", target, stream.status_code)
                try:
                    yield stream
                finally:
                    await stream.aclose()
        except (TimeoutError, httpx.TimeoutException) as exc:
            raise FetchTimeout(url, status_code=stream.status_code if stream else None) from exc
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            logger.debug("GET %s failed: %r", target, exc)
            raise TransportError(
                url,
                _describe(exc),
                category=categorize_exception(exc),
                status_code=stream.status_code if stream else None,
            ) from exc

    async def aclose(self) -> None:
        await self._client.aclose()
