"""HTTPS downloads for MTA-STS policies and BIMI assets."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from .constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_USER_AGENT, MAX_DOWNLOAD_BYTES

# Injectable download collaborator: (url, timeout) -> (content, error)
Fetcher = Callable[[str, float], Awaitable[tuple[bytes | None, str | None]]]


@dataclass
class HTTPResult:
    """
    Outcome of a download.

    ``content`` is set on success, ``error`` and ``error_type`` otherwise.
    """

    success: bool
    content: bytes | None = None
    status_code: int | None = None
    error: str | None = None
    error_type: str | None = None  # "timeout", "http_error", "ssl_error", "connection_error", "too_large", "insecure_redirect"


def _connect_error(url: str, e: httpx.ConnectError) -> HTTPResult:
    message = str(e).lower()
    if any(term in message for term in ("ssl", "certificate", "tls")):
        return HTTPResult(success=False, error=f"SSL error accessing {url}: {e}", error_type="ssl_error")
    return HTTPResult(success=False, error=f"Connection error accessing {url}: {e}", error_type="connection_error")


async def safe_http_get(
    url: str,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    user_agent: str | None = None,
    max_bytes: int = MAX_DOWNLOAD_BYTES,
    **kwargs: Any,
) -> HTTPResult:
    """
    Download a resource without raising.

    Redirects are followed but must stay on HTTPS when the request was
    HTTPS. The body is streamed and abandoned once it exceeds ``max_bytes``.

    Args:
        url: URL to fetch
        timeout: Request timeout in seconds
        user_agent: Custom user agent string (default from constants)
        max_bytes: Largest body accepted
        **kwargs: Additional httpx.AsyncClient arguments

    Returns:
        HTTPResult with either the body or error information
    """
    headers = kwargs.pop("headers", {})
    headers.setdefault("User-Agent", user_agent or DEFAULT_USER_AGENT)

    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True, **kwargs) as client:
            async with client.stream("GET", url, headers=headers) as response:
                if url.lower().startswith("https://") and response.url.scheme != "https":
                    return HTTPResult(
                        success=False,
                        status_code=response.status_code,
                        error=f"Redirected from {url} to non-HTTPS {response.url}",
                        error_type="insecure_redirect",
                    )
                if response.is_error:
                    return HTTPResult(
                        success=False,
                        status_code=response.status_code,
                        error=f"HTTP {response.status_code}: {url}",
                        error_type="http_error",
                    )

                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > max_bytes:
                        return HTTPResult(
                            success=False,
                            status_code=response.status_code,
                            error=f"Response from {url} exceeds {max_bytes} bytes",
                            error_type="too_large",
                        )
                return HTTPResult(success=True, content=bytes(body), status_code=response.status_code)

    except httpx.TimeoutException:
        return HTTPResult(success=False, error=f"Timeout accessing {url} ({timeout}s)", error_type="timeout")
    except httpx.ConnectError as e:
        return _connect_error(url, e)
    except httpx.HTTPError as e:
        return HTTPResult(success=False, error=f"Error accessing {url}: {e}", error_type="general")


async def fetch_bytes(
    url: str,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    user_agent: str | None = None,
) -> tuple[bytes | None, str | None]:
    """
    Download a resource and return (content, None) or (None, error).
    """
    result = await safe_http_get(url, timeout=timeout, user_agent=user_agent)
    if result.success:
        return result.content, None
    return None, result.error


def make_fetcher(user_agent: str | None = None) -> Fetcher:
    """Bind a user agent to fetch_bytes for use as an injected fetcher."""

    async def fetch(url: str, timeout: float) -> tuple[bytes | None, str | None]:
        return await fetch_bytes(url, timeout=timeout, user_agent=user_agent)

    return fetch
