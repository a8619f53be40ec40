"""
Relay error taxonomy.

Every failure raised while handling a request is one of these. The exception
handlers registered in smm_relay.main turn them into JSON responses, so no
request error ever escapes to the server.
"""

from typing import Any, Dict, Optional

BODY_TOO_LARGE_MESSAGE = "Request body too large"


class RelayError(Exception):
    """Base class for errors converted into HTTP responses."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message}


class InvalidRequestError(RelayError):
    """Request body cannot be used. Never reaches an upstream."""

    status_code = 400


class PayloadTooLargeError(InvalidRequestError):
    """Request body exceeds the configured size limit."""

    status_code = 413


class OrderValidationError(InvalidRequestError):
    """Order payload is missing required fields or has invalid values."""


class UpstreamTransportError(RelayError):
    """Network failure, timeout, or non-2xx status from an upstream."""

    status_code = 502

    def __init__(self, message: str, detail: str, upstream: Optional[str] = None):
        super().__init__(message)
        self.detail = detail
        self.upstream = upstream

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message, "detail": self.detail}


class UpstreamNotConfiguredError(UpstreamTransportError):
    """Credentials for the upstream are not configured; no call was made."""


class UpstreamLogicalError(RelayError):
    """Upstream answered, but its payload signals failure."""

    status_code = 502

    def __init__(self, message: str, data: Any, upstream: Optional[str] = None):
        super().__init__(message)
        self.data = data
        self.upstream = upstream

    def to_response(self) -> Dict[str, Any]:
        return {"ok": False, "error": self.message, "data": self.data}
