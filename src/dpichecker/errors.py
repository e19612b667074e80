# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl as ssl_module
from enum import Enum

import httpx


class ErrorCategory(str, Enum):
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    READ_TIMEOUT = "READ_TIMEOUT"
    DNS_ERROR = "DNS_ERROR"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
    UNREACHABLE = "UNREACHABLE"
    NONE = "NONE"


class FetchError(Exception):
    """Base class for failures raised by the deadline-bound fetcher."""

    def __init__(self, url: str, message: str = ""):
        super().__init__(message or url)
        self.url = url


class FetchTimeout(FetchError):
    """
    The probe deadline fired.

    `status_code` is the HTTP status observed before the deadline, or None when the
    response headers never arrived (connection-phase timeout).
    """

    def __init__(self, url: str, status_code: int | None = None):
        phase = "read" if status_code is not None else "connection"
        super().__init__(url, f"{phase} timeout for {url}")
        self.status_code = status_code

    @property
    def category(self) -> ErrorCategory:
        if self.status_code is None:
            return ErrorCategory.CONNECTION_TIMEOUT
        return ErrorCategory.READ_TIMEOUT


class TransportError(FetchError):
    """Any network-level fault not attributable to the deadline (DNS, TLS, reset...)."""

    def __init__(
        self,
        url: str,
        detail: str,
        *,
        category: ErrorCategory = ErrorCategory.TRANSPORT_ERROR,
        status_code: int | None = None,
    ):
        super().__init__(url, detail)
        self.detail = detail
        self.category = category
        self.status_code = status_code


class UnexpectedStatus(FetchError):
    """A response arrived with a status the caller does not accept."""

    def __init__(self, url: str, status_code: int):
        super().__init__(url, f"HTTP {status_code} from {url}")
        self.status_code = status_code


class CatalogueError(ValueError):
    """The test catalogue is malformed (duplicate ids, bad repeat counts...)."""


class OrchestratorBusyError(RuntimeError):
    """A run was requested while a previous run is still active."""


def _find_cause_of_type(exc: BaseException, target_type: type, max_depth: int = 10) -> BaseException | None:
    current: BaseException | None = exc
    for _ in range(max_depth):
        if current is None:
            return None
        if isinstance(current, target_type):
            return current
        current = current.__cause__ or current.__context__
    return None


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.

    httpx wraps the underlying OS errors, so the exception chain is searched for
    the root cause before falling back to the httpx class.
    """
    if isinstance(exc, FetchTimeout):
        return exc.category
    if isinstance(exc, TransportError):
        return exc.category

    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorCategory.CONNECTION_TIMEOUT

    if _find_cause_of_type(exc, socket.gaierror) is not None or _find_cause_of_type(exc, socket.herror) is not None:
        return ErrorCategory.DNS_ERROR

    if _find_cause_of_type(exc, ssl_module.SSLError) is not None or _find_cause_of_type(exc, ssl_module.CertificateError) is not None:
        return ErrorCategory.SSL_ERROR

    if isinstance(exc, (httpx.RemoteProtocolError, httpx.LocalProtocolError)):
        return ErrorCategory.PROTOCOL_ERROR

    if isinstance(exc, (httpx.ConnectError, httpx.ReadError, httpx.WriteError, httpx.CloseError, httpx.ProxyError)):
        return ErrorCategory.CONNECTION_ERROR

    if isinstance(exc, (ConnectionError, ConnectionRefusedError, ConnectionResetError)):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.TRANSPORT_ERROR


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.CONNECTION_TIMEOUT: "No response before the deadline",
        ErrorCategory.READ_TIMEOUT: "Response stalled before the deadline",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.SSL_ERROR: "TLS/certificate issue",
        ErrorCategory.CONNECTION_ERROR: "Connection refused or reset",
        ErrorCategory.PROTOCOL_ERROR: "Malformed or truncated HTTP exchange",
        ErrorCategory.TRANSPORT_ERROR: "Network error during probe",
        ErrorCategory.INSUFFICIENT_DATA: "Stream ended below the threshold",
        ErrorCategory.UNREACHABLE: "Reachability check failed",
        ErrorCategory.NONE: "",
        None: "",
    }
    return mapping.get(category, "Probe failed due to network error")


__all__ = [
    "CatalogueError",
    "ErrorCategory",
    "FetchError",
    "FetchTimeout",
    "OrchestratorBusyError",
    "TransportError",
    "UnexpectedStatus",
    "categorize_exception",
    "error_category_to_reason",
]
