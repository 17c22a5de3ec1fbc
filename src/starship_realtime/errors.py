"""Error taxonomy for the trade feed.

Every failure surfaced to an HTTP client is one of the subclasses below.
The API layer maps them onto status codes; nothing else in the package
needs to know about HTTP.
"""

from __future__ import annotations

from typing import Any


class TradeFeedError(Exception):
    """Base exception for trade feed errors."""

    status_code = 500

    def __init__(self, error: str, details: str = "") -> None:
        super().__init__(f"{error}: {details}" if details else error)
        self.error = error
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, "details": self.details}


class ValidationError(TradeFeedError):
    """Raised when a client request is malformed or a window is rejected.

    Carries the canonical horizon bounds when they are known so the client
    can correct its windows.
    """

    status_code = 400

    def __init__(
        self,
        error: str,
        details: str = "",
        *,
        bounds: dict[str, str] | None = None,
    ) -> None:
        super().__init__(error, details)
        self.bounds = bounds

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.bounds is not None:
            body["bounds"] = self.bounds
        return body


class ProviderError(TradeFeedError):
    """Raised when the trade-data provider fails or returns an error payload."""

    def __init__(self, details: str, *, status_code: int | None = None) -> None:
        super().__init__("Server error", details)
        self.upstream_status = status_code


class InternalError(TradeFeedError):
    """Raised for any other unexpected failure while serving a request."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__("Server error", str(cause))
        self.cause = cause
