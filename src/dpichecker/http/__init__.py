# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP fetcher exports."""

from .client import Fetcher, create_default_fetcher
from .httpx_client import FetchStream, HttpxFetcher
from .url import CACHE_BUST_PARAM, cache_bust_url

__all__ = [
    "CACHE_BUST_PARAM",
    "FetchStream",
    "Fetcher",
    "HttpxFetcher",
    "cache_bust_url",
    "create_default_fetcher",
]
