"""Tests for UrlExtractor — SSRF guard, scheme validation, fetch pipeline."""

from __future__ import annotations

import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from speakit.gateway.base import ExtractedContent, GatewayError
from speakit.gateway.web import SsrfError, UrlExtractor, extract_from_url


# ------------------------------------------------------------------
# Scheme validation
# ------------------------------------------------------------------


def test_scheme_https_ok():
    UrlExtractor._validate_scheme("https://example.com/page")  # no exception


def test_scheme_http_ok():
    UrlExtractor._validate_scheme("http://example.com/page")  # no exception


@pytest.mark.parametrize("url", ["ftp://example.com", "file:///etc/passwd", "example.com"])
def test_scheme_rejected(url):
    with pytest.raises(GatewayError, match="scheme"):
        UrlExtractor._validate_scheme(url)


def test_check_ssrf_no_hostname_raises():
    with pytest.raises(GatewayError, match="hostname"):
        UrlExtractor._check_ssrf("https://")


# ------------------------------------------------------------------
# SSRF guard
# ------------------------------------------------------------------


def _patch_getaddrinfo(ip: str):
    """Return a context manager that makes getaddrinfo resolve to *ip*."""
    addr_info = [(None, None, None, None, (ip, 0))]
    return patch("speakit.gateway.web.socket.getaddrinfo", return_value=addr_info)


def test_ssrf_public_ip_ok():
    with _patch_getaddrinfo("93.184.216.34"):
        UrlExtractor._check_ssrf("https://example.com")  # no exception


@pytest.mark.parametrize(
    "ip",
    ["127.0.0.1", "10.0.0.1", "172.16.0.1", "192.168.1.1", "169.254.169.254", "::1", "0.0.0.0"],
)
def test_ssrf_private_ranges_blocked(ip):
    with _patch_getaddrinfo(ip):
        with pytest.raises(SsrfError, match="private address"):
            UrlExtractor._check_ssrf("http://internal.example/")


def test_ssrf_error_is_gateway_error():
    assert issubclass(SsrfError, GatewayError)


def test_dns_failure_raises():
    import socket

    with patch("speakit.gateway.web.socket.getaddrinfo", side_effect=socket.gaierror("nope")):
        with pytest.raises(GatewayError, match="DNS resolution failed"):
            UrlExtractor._check_ssrf("https://no-such-host.example")


# ------------------------------------------------------------------
# _to_plain_text()
# ------------------------------------------------------------------


def test_plain_text_passthrough():
    text, title = UrlExtractor._to_plain_text(b"Hello world.", "text/plain")
    assert text == "Hello world."
    assert title == ""


def test_html_converted_to_text():
    html = b"<html><body><p>Readable <b>article</b> body.</p></body></html>"
    text, _ = UrlExtractor._to_plain_text(html, "text/html")
    assert "Readable" in text
    assert "<" not in text


def test_html_chrome_removed():
    html = (
        b"<html><body><nav>Menu</nav><script>alert('x')</script>"
        b"<p>Content.</p><footer>Copyright</footer></body></html>"
    )
    text, _ = UrlExtractor._to_plain_text(html, "text/html")
    assert "alert" not in text
    assert "Menu" not in text
    assert "Copyright" not in text
    assert "Content" in text


def test_article_preferred_over_page():
    html = b"<html><body><div>Sidebar junk</div><article><p>Main story.</p></article></body></html>"
    text, _ = UrlExtractor._to_plain_text(html, "text/html")
    assert "Main story" in text
    assert "Sidebar" not in text


def test_title_from_title_tag():
    html = b"<html><head><title>  The   Headline </title></head><body><p>x</p></body></html>"
    text, title = UrlExtractor._to_plain_text(html, "text/html")
    assert title == "The Headline"
    assert "Headline" not in text


def test_title_falls_back_to_h1():
    html = b"<html><body><h1>Big Heading</h1><p>x</p></body></html>"
    _, title = UrlExtractor._to_plain_text(html, "text/html")
    assert title == "Big Heading"


# ------------------------------------------------------------------
# extract(): full pipeline (mocked network)
# ------------------------------------------------------------------


def _response(body: bytes, content_type: str = "text/html; charset=utf-8"):
    response = MagicMock()
    response.headers = {"Content-Type": content_type}
    response.read.side_effect = lambda n=-1: body if n < 0 else body[:n]
    return response


def _patch_open(response=None, error=None):
    opener = MagicMock()
    if error is not None:
        opener.open.side_effect = error
    else:
        opener.open.return_value = response
    return patch("speakit.gateway.web.urllib.request.build_opener", return_value=opener)


def test_extract_returns_content_and_title():
    body = b"<html><head><title>Story</title></head><body><p>Once upon a time.</p></body></html>"
    with _patch_getaddrinfo("93.184.216.34"), _patch_open(_response(body)):
        result = extract_from_url("https://example.com/story")
    assert isinstance(result, ExtractedContent)
    assert "Once upon a time." in result.content
    assert result.title == "Story"


def test_extract_title_defaults_to_host():
    with _patch_getaddrinfo("93.184.216.34"), _patch_open(_response(b"Plain words.", "text/plain")):
        result = extract_from_url("  https://news.example.com/a  ")
    assert result.title == "news.example.com"


def test_extract_blocked_before_fetch():
    with _patch_getaddrinfo("10.1.2.3"), _patch_open(_response(b"x")) as build:
        with pytest.raises(SsrfError):
            extract_from_url("http://intranet.example/")
    build.assert_not_called()


def test_extract_rejects_content_type():
    with _patch_getaddrinfo("93.184.216.34"), _patch_open(_response(b"%PDF", "application/pdf")):
        with pytest.raises(GatewayError, match="Content-Type"):
            extract_from_url("https://example.com/file.pdf")


def test_extract_rejects_oversized_body():
    with _patch_getaddrinfo("93.184.216.34"), _patch_open(_response(b"x" * 2048, "text/plain")):
        with pytest.raises(GatewayError, match="exceeds"):
            UrlExtractor(max_bytes=1024).extract("https://example.com/big")


def test_extract_wraps_transport_errors():
    error = urllib.error.URLError("connection refused")
    with _patch_getaddrinfo("93.184.216.34"), _patch_open(error=error):
        with pytest.raises(GatewayError, match="Failed to fetch"):
            extract_from_url("https://example.com/")


def test_extract_wraps_timeouts():
    with _patch_getaddrinfo("93.184.216.34"), _patch_open(error=TimeoutError()):
        with pytest.raises(GatewayError, match="Timed out"):
            extract_from_url("https://example.com/")


def test_extract_empty_page_raises():
    body = b"<html><body><script>only()</script></body></html>"
    with _patch_getaddrinfo("93.184.216.34"), _patch_open(_response(body)):
        with pytest.raises(GatewayError, match="No readable text"):
            extract_from_url("https://example.com/empty")
