"""URL extraction — fetch an article and reduce it to readable text.

Security requirements:
- SSRF guard: ipaddress module blocks private/loopback/link-local ranges before
  any connection is established.
- Allowed URL schemes: https:// and http:// only.
- Content-Type whitelist: text/html and text/plain only.
- Max response body: 5 MB (configurable).
- Timeout: 30 seconds (connect + read).
- Max redirects: 3.
"""

from __future__ import annotations

import ipaddress
import socket
import urllib.error
import urllib.parse
import urllib.request
from http.client import HTTPResponse

import html2text
from bs4 import BeautifulSoup

from speakit.gateway.base import ExtractedContent, GatewayError

_USER_AGENT = "speakit/0.1"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_TIMEOUT = 30  # seconds
_MAX_REDIRECTS = 3
_ALLOWED_SCHEMES = {"https", "http"}
_ALLOWED_CONTENT_TYPES = {"text/html", "text/plain"}
_STRIP_TAGS = ["script", "style", "nav", "footer", "header", "aside", "form", "noscript"]

_h2t = html2text.HTML2Text()
_h2t.ignore_links = True
_h2t.ignore_images = True
_h2t.ignore_emphasis = True
_h2t.body_width = 0


class SsrfError(GatewayError):
    """Raised when a URL resolves to a private or reserved address."""


class UrlExtractor:
    """Fetch a URL and return its readable text and title.

    SSRF protection is applied *before* any connection is made: the hostname
    is resolved and every resulting address is checked against private,
    loopback, link-local and reserved ranges.
    """

    def __init__(self, max_bytes: int = _MAX_BYTES, timeout: int = _TIMEOUT) -> None:
        self.max_bytes = max_bytes
        self.timeout = timeout

    def extract(self, url: str) -> ExtractedContent:
        """Validate, fetch and convert *url*.

        Raises:
            GatewayError: On invalid URLs, blocked hosts, transport failures,
                unsupported content, or pages without readable text.
        """
        url = url.strip()
        self._validate_scheme(url)
        self._check_ssrf(url)
        raw, content_type = self._fetch(url)
        content, title = self._to_plain_text(raw, content_type)
        if not content.strip():
            raise GatewayError(f"No readable text found at '{url}'.")
        return ExtractedContent(content=content, title=title or _host_title(url))

    @staticmethod
    def _validate_scheme(url: str) -> None:
        parsed = urllib.parse.urlparse(url)
        if parsed.scheme not in _ALLOWED_SCHEMES:
            raise GatewayError(
                f"Unsupported URL scheme '{parsed.scheme}'. Only https:// and http:// are allowed."
            )

    @staticmethod
    def _check_ssrf(url: str) -> None:
        parsed = urllib.parse.urlparse(url)
        hostname = parsed.hostname
        if not hostname:
            raise GatewayError(f"URL has no hostname: {url}")

        try:
            addrinfos = socket.getaddrinfo(hostname, None)
        except socket.gaierror as exc:
            raise GatewayError(f"DNS resolution failed for '{hostname}': {exc}") from exc

        for addrinfo in addrinfos:
            addr_str = addrinfo[4][0]
            try:
                ip = ipaddress.ip_address(addr_str)
            except ValueError:
                continue
            if (
                ip.is_private
                or ip.is_loopback
                or ip.is_link_local
                or ip.is_reserved
                or ip.is_multicast
                or ip.is_unspecified
            ):
                raise SsrfError(
                    f"URL resolves to private address ({ip}). "
                    "Access to internal network addresses is not allowed."
                )

    def _fetch(self, url: str) -> tuple[bytes, str]:
        """Fetch *url*; returns (body_bytes, content_type_without_params)."""
        request = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
        opener = urllib.request.build_opener(_LimitedRedirectHandler(_MAX_REDIRECTS))

        try:
            response: HTTPResponse = opener.open(request, timeout=self.timeout)
        except urllib.error.URLError as exc:
            raise GatewayError(f"Failed to fetch URL '{url}': {exc}") from exc
        except TimeoutError as exc:
            raise GatewayError(f"Timed out fetching URL '{url}'.") from exc

        raw_ct = response.headers.get("Content-Type", "text/html")
        ct = raw_ct.split(";")[0].strip().lower()
        if ct not in _ALLOWED_CONTENT_TYPES:
            raise GatewayError(
                f"Unsupported Content-Type '{ct}' for URL '{url}'. "
                f"Accepted: {', '.join(sorted(_ALLOWED_CONTENT_TYPES))}"
            )

        body = response.read(self.max_bytes + 1)
        if len(body) > self.max_bytes:
            raise GatewayError(
                f"Response body exceeds {self.max_bytes // (1024 * 1024)} MB limit for URL '{url}'."
            )

        return body, ct

    @staticmethod
    def _to_plain_text(body: bytes, content_type: str) -> tuple[str, str]:
        """Convert *body* to (text, title)."""
        text = body.decode("utf-8", errors="replace")
        if content_type == "text/plain":
            return text.strip(), ""

        soup = BeautifulSoup(text, "html.parser")
        title = _page_title(soup)
        for tag in soup.find_all(_STRIP_TAGS):
            tag.decompose()
        if soup.head is not None:
            soup.head.decompose()
        root = soup.find("article") or soup.find("main") or soup
        return _h2t.handle(str(root)).strip(), title


class _LimitedRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Raise an error after more than *max_redirects* redirects."""

    def __init__(self, max_redirects: int) -> None:
        self._max_redirects = max_redirects
        self._count = 0

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        self._count += 1
        if self._count > self._max_redirects:
            raise GatewayError(
                f"Too many redirects (>{self._max_redirects}) for URL '{req.full_url}'."
            )
        return super().redirect_request(req, fp, code, msg, headers, newurl)


def _page_title(soup: BeautifulSoup) -> str:
    if soup.title and soup.title.string:
        return " ".join(soup.title.string.split())
    h1 = soup.find("h1")
    if h1 is not None:
        return " ".join(h1.get_text().split())
    return ""


def _host_title(url: str) -> str:
    return urllib.parse.urlparse(url).hostname or url


def extract_from_url(url: str, *, max_bytes: int = _MAX_BYTES, timeout: int = _TIMEOUT) -> ExtractedContent:
    """Request ``{url}`` → response ``{content, title}``."""
    return UrlExtractor(max_bytes=max_bytes, timeout=timeout).extract(url)
