"""
Upstream failure taxonomy.

Every failure of the market-data client is raised as a subclass of
``UpstreamError`` so callers can tell "the exchange misbehaved" apart from
programming errors and decide whether to degrade or propagate.

Insufficient history is deliberately *not* an error: the indicator
functions return neutral defaults instead.
"""

from __future__ import annotations


class UpstreamError(Exception):
    """Base class for every failed call to the exchange API."""

    def __init__(self, message: str, *, endpoint: str | None = None):
        super().__init__(message)
        self.endpoint = endpoint


class UpstreamTimeout(UpstreamError):
    """The upstream call exceeded its request timeout."""


class UpstreamConnectionError(UpstreamError):
    """The request never produced an HTTP response (DNS, refused, reset)."""


class UpstreamHttpError(UpstreamError):
    """The exchange answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        endpoint: str | None = None,
    ):
        super().__init__(message, endpoint=endpoint)
        self.status_code = status_code


class UpstreamMalformedData(UpstreamError):
    """The body was not JSON, had the wrong shape, or a numeric field did
    not parse to a finite number."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        symbol: str | None = None,
        endpoint: str | None = None,
    ):
        super().__init__(message, endpoint=endpoint)
        self.field = field
        self.symbol = symbol
