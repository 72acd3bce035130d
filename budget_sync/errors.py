"""
Sync Error Hierarchy

SyncError
├── TransportError          the response never became JSON we could read
│   ├── NetworkError        no connectivity / DNS / TLS / timeout / bad URL
│   ├── HTTPStatusError     non-2xx status
│   ├── EmptyBodyError      2xx with nothing in it
│   └── HTMLErrorPageError  the script host served a web error page
└── DecodeError             the envelope was not the expected shape

Malformed optional fields are NOT errors; they decode to defaults.
"""


class SyncError(Exception):
    """Base exception for remote sync operations."""
    pass


class TransportError(SyncError):
    """The request failed before any decoding was attempted."""
    pass


class NetworkError(TransportError):
    """Could not reach the endpoint."""
    pass


class HTTPStatusError(TransportError):
    """The endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP error: {status_code}")


class EmptyBodyError(TransportError):
    """No data received from server."""
    pass


class HTMLErrorPageError(TransportError):
    """Server returned an error page instead of data."""

    def __init__(self, snippet: str):
        self.snippet = snippet
        super().__init__("Server returned an error page instead of data")


class DecodeError(SyncError):
    """The response body could not be decoded."""

    def __init__(self, reason: str, message: str = ""):
        self.reason = reason
        super().__init__(message or f"Could not decode response ({reason})")
