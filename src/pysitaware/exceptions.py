"""Custom exception hierarchy for pysitaware.

Only configuration and collaborator plumbing raise.  Degenerate predictions,
unknown assets and infeasible rendezvous are reported as ``None`` or as a
flagged row, never as exceptions.
"""

from __future__ import annotations


class SitAwareError(Exception):
    """Base exception for all pysitaware errors."""


class SitAwareConfigError(SitAwareError):
    """Invalid or missing configuration."""


class InvalidSampleError(SitAwareError):
    """A vector-field sample or position report failed validation.

    Ingestion paths catch this and drop the input without mutating state.
    """

    def __init__(self, message: str, *, raw: object = None) -> None:
        self.raw = raw
        super().__init__(message)


class SitAwareTransportError(SitAwareError):
    """HTTP-level failure while polling a location feed (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class LocationSourceError(SitAwareError):
    """A location source could not be built or started."""

    def __init__(self, message: str, *, source: str = "") -> None:
        self.source = source
        super().__init__(message)
