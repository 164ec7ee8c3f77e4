"""
Client Errors

Every failure surfaced by the client is a GatewayClientError carrying:
    - origin: "client" for local failures, otherwise what the gateway reported
    - error:  a human-readable message

Hierarchy:
    GatewayClientError
    ├── ValidationError   bad caller input, detected before any network call
    ├── TransportError    timeout, refused connection, DNS failure...
    └── GatewayError      non-200 response, body kept verbatim

Usage:
    try:
        pairs = await client.find_pairs("BTC")
    except GatewayClientError as e:
        print(e.to_dict())  # {'origin': 'client', 'error': '...'}
"""

from typing import Any, Dict, Optional


CLIENT_ORIGIN = "client"


class GatewayClientError(Exception):
    """Base class for all errors raised by the gateway client."""

    def __init__(self, error: str, origin: Optional[str] = CLIENT_ORIGIN):
        super().__init__(error)
        self.error = error
        self.origin = origin

    def to_dict(self) -> Dict[str, Any]:
        return {"origin": self.origin, "error": self.error}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(origin={self.origin!r}, error={self.error!r})"


class ValidationError(GatewayClientError):
    """Invalid argument, raised before any request is issued."""

    def __init__(self, error: str):
        super().__init__(error, origin=CLIENT_ORIGIN)


class TransportError(GatewayClientError):
    """Request could not complete (no response received)."""

    def __init__(self, error: str = "unknown error"):
        super().__init__(error or "unknown error", origin=CLIENT_ORIGIN)


class GatewayError(GatewayClientError):
    """
    Gateway answered with a non-200 status.

    Attributes:
        status: HTTP status code
        body: Decoded response body, exactly as returned by the gateway
    """

    def __init__(self, status: int, body: Any):
        self.status = status
        self.body = body
        origin = None
        error = None
        if isinstance(body, dict):
            origin = body.get("origin")
            error = body.get("error")
        if error is None:
            error = body if isinstance(body, str) and body else f"HTTP {status}"
        super().__init__(str(error), origin=origin)

    def to_dict(self) -> Dict[str, Any]:
        if isinstance(self.body, dict):
            return dict(self.body)
        return super().to_dict()
