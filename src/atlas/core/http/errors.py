from __future__ import annotations


class AtlasHTTPError(RuntimeError):
    """Base error for shared HTTP client operations."""


class AtlasHTTPStatusError(AtlasHTTPError):
    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AtlasHTTPNetworkError(AtlasHTTPError):
    """Raised on transport failures, including timeouts."""


class AtlasHTTPTimeoutError(AtlasHTTPNetworkError):
    pass
