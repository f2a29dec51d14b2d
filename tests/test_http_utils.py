"""Tests for HTTPS downloads using httpx mock transports."""

import asyncio

import httpx

from email_domain_check.http_utils import safe_http_get


def get(url, handler, **kwargs):
    return asyncio.run(safe_http_get(url, transport=httpx.MockTransport(handler), **kwargs))


class TestSafeHttpGet:
    """Test download outcomes."""

    def test_success(self):
        """Test the body and the user agent."""
        seen = {}

        def handler(request):
            seen["ua"] = request.headers["User-Agent"]
            return httpx.Response(200, content=b"version: STSv1\n")

        result = get("https://mta-sts.example.com/.well-known/mta-sts.txt", handler, user_agent="probe/1")
        assert result.success
        assert result.content == b"version: STSv1\n"
        assert seen["ua"] == "probe/1"

    def test_http_error(self):
        """Test error statuses are reported, not raised."""
        result = get("https://example.com/logo.svg", lambda request: httpx.Response(404))
        assert not result.success
        assert result.error_type == "http_error"
        assert result.status_code == 404

    def test_too_large(self):
        """Test bodies over the limit are refused."""
        result = get(
            "https://example.com/logo.svg",
            lambda request: httpx.Response(200, content=b"x" * 2048),
            max_bytes=1024,
        )
        assert result.error_type == "too_large"

    def test_redirect_to_http_refused(self):
        """Test an HTTPS request may not end on plain HTTP."""

        def handler(request):
            if request.url.scheme == "https":
                return httpx.Response(302, headers={"Location": "http://example.com/logo.svg"})
            return httpx.Response(200, content=b"<svg/>")

        result = get("https://example.com/logo.svg", handler)
        assert result.error_type == "insecure_redirect"

    def test_connection_error(self):
        """Test transport failures become connection errors."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = get("https://example.com/logo.svg", handler)
        assert result.error_type == "connection_error"

    def test_timeout(self):
        """Test timeouts are reported as such."""

        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        result = get("https://example.com/logo.svg", handler, timeout=1.0)
        assert result.error_type == "timeout"
