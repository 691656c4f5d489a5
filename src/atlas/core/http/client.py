from __future__ import annotations

import os

import httpx

from .errors import AtlasHTTPNetworkError, AtlasHTTPStatusError, AtlasHTTPTimeoutError

_DEFAULT_TIMEOUT_S = 30.0
_DEFAULT_CONNECT_TIMEOUT_S = 5.0
_DEFAULT_USER_AGENT = "Atlas/1.0"


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def build_timeout(total_s: float | None = None) -> httpx.Timeout:
    connect_s = max(0.1, _get_float_env("ATLAS_HTTP_CONNECT_TIMEOUT_S", _DEFAULT_CONNECT_TIMEOUT_S))
    read_total = max(0.1, total_s if total_s is not None else _get_float_env("ATLAS_HTTP_TIMEOUT_S", _DEFAULT_TIMEOUT_S))
    return httpx.Timeout(read_total, connect=min(connect_s, read_total))


def new_async_client(timeout_s: float | None = None, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    user_agent = os.getenv("ATLAS_HTTP_USER_AGENT", _DEFAULT_USER_AGENT)
    return httpx.AsyncClient(timeout=build_timeout(timeout_s), headers={"User-Agent": user_agent}, transport=transport)


async def send_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    json: object | None = None,
    params: dict[str, str] | None = None,
    timeout_s: float | None = None,
) -> httpx.Response:
    try:
        response = await client.request(
            method,
            url,
            headers=headers,
            json=json,
            params=params,
            timeout=build_timeout(timeout_s) if timeout_s is not None else httpx.USE_CLIENT_DEFAULT,
        )
    except httpx.TimeoutException as exc:
        raise AtlasHTTPTimeoutError(f"HTTP request timed out for {url}: {exc.__class__.__name__}") from exc
    except httpx.HTTPError as exc:
        raise AtlasHTTPNetworkError(f"HTTP request error for {url}: {exc.__class__.__name__}") from exc

    status = response.status_code
    if 200 <= status < 300:
        return response
    raise AtlasHTTPStatusError(f"HTTP status {status} for {url}", status_code=status, body=response.text)
