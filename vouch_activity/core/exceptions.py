"""
Application-level exceptions.

Every error carries a ``retryable`` flag set by the layer that raises it, so
the retry wrapper and the orchestrators never inspect message strings.

Taxonomy:
- ValidationError (InvalidAddress, InvalidParameter): never retried; fails
  the request before any network call.
- UpstreamTransient: timeouts, 5xx, 429, network failures; retried.
- UpstreamRejected: 4xx-class rejections and malformed payloads; not retried.
- EnrichmentFailure: one item's valuation failed; absorbed as zero.
- PriceUnavailable: absorbed by the price oracle fallback.
"""

from __future__ import annotations


class ActivityError(Exception):
    """Base error for the activity pipeline."""

    retryable: bool = False

    def __init__(self, message: str, *, retryable: bool | None = None) -> None:
        super().__init__(message)
        self.message = message
        if retryable is not None:
            self.retryable = retryable


class ValidationError(ActivityError):
    retryable = False


class InvalidAddress(ValidationError):
    pass


class InvalidParameter(ValidationError):
    pass


class UpstreamError(ActivityError):
    """Failure talking to Helius or the price endpoint."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message, retryable=retryable)
        self.status_code = status_code


class UpstreamTransient(UpstreamError):
    retryable = True


class UpstreamRejected(UpstreamError):
    retryable = False


class EnrichmentFailure(ActivityError):
    retryable = False


class PriceUnavailable(ActivityError):
    retryable = False
