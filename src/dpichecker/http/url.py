# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""URL helpers shared across probes."""

from __future__ import annotations

import secrets
from urllib.parse import urlsplit, urlunsplit

CACHE_BUST_PARAM = "t"


def cache_bust_url(url: str, token: str | None = None) -> str:
    """
    Append a random `t=` query parameter so no cache along the path can answer the probe.

    The fragment is dropped: it is never sent to the server, and appending after it
    would leave the query untouched.

    Example:
      https://host/a?x=1#top -> https://host/a?x=1&t=<token>
    """
    parts = urlsplit(str(url or ""))
    value = token if token is not None else secrets.token_hex(8)
    param = f"{CACHE_BUST_PARAM}={value}"
    query = f"{parts.query}&{param}" if parts.query else param
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, ""))


__all__ = ["CACHE_BUST_PARAM", "cache_bust_url"]
