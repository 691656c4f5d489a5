from .client import build_timeout, new_async_client, send_request
from .errors import AtlasHTTPError, AtlasHTTPNetworkError, AtlasHTTPStatusError, AtlasHTTPTimeoutError

__all__ = [
    "build_timeout",
    "new_async_client",
    "send_request",
    "AtlasHTTPError",
    "AtlasHTTPNetworkError",
    "AtlasHTTPStatusError",
    "AtlasHTTPTimeoutError",
]
