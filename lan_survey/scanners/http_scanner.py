"""
HTTP(S) probes for the LAN survey.

The info probe fetches `/`, follows a few redirects, and derives a
display name from the page title or the Server header while capturing
the identifying response headers. The favicon probe hashes
`/favicon.ico` into the fingerprint format used by internet-wide
scanners (MurmurHash3 of the base64 text).
"""

import base64
import re
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlsplit

import httpx
import mmh3

from .base_scanner import BaseProbe
from .tls_scanner import unverified_context
from ..core.data_models import HttpInfo
from ..utils.logger import Logger
from ..utils.network_utils import normalize_name

USER_AGENT = "LanSurvey/1.0"
MAX_REDIRECTS = 3
MAX_BODY_BYTES = 64 * 1024
MAX_FAVICON_BYTES = 256 * 1024

TITLE_PATTERN = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
ABSOLUTE_URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)

MEANINGLESS_TITLE_PATTERNS = [
    re.compile(pattern)
    for pattern in (
        r"^error",
        r"^login$",
        r"^login\b",
        r"^sign in$",
        r"^sign-in$",
        r"^signin$",
        r"^sign\s?in\b",
        r"^forbidden$",
        r"^unauthorized$",
        r"^not found$",
        r"^bad request$",
        r"^moved permanently$",
        r"^301$",
        r"^302$",
        r"^redirect$",
        r"^redirected$",
        r"^access denied$",
        r"^service unavailable$",
        r"^internal server error$",
    )
]
MEANINGLESS_WORDS = re.compile(
    r"\b(error|login|sign\s?in|forbidden|unauthorized|not found|moved permanently|redirect)\b",
    re.IGNORECASE,
)

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class RequestTarget:
    """Where the next request of a redirect chain goes."""
    scheme: str
    host: str
    port: int
    path: str

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}{self.path}"


def extract_title(html: str) -> str:
    """Return the first <title> text with whitespace collapsed, or ""."""
    match = TITLE_PATTERN.search(html)
    if not match:
        return ""
    return " ".join(match.group(1).split())


def is_meaningless_title(title: Optional[str]) -> bool:
    """
    Decide whether a title says nothing about the device.

    Blank titles and generic error, login and redirect pages are
    meaningless.
    """
    if not title:
        return True
    value = title.strip().lower()
    if not value:
        return True
    if any(pattern.search(value) for pattern in MEANINGLESS_TITLE_PATTERNS):
        return True
    return bool(MEANINGLESS_WORDS.search(value))


def resolve_redirect(current: RequestTarget, location: Optional[str]) -> Optional[RequestTarget]:
    """
    Resolve a Location header against the current request.

    Absolute http(s) URLs carry their own scheme, host and path; anything
    else is a path on the current scheme and host.

    Returns:
        RequestTarget for the next hop, or None when nothing usable is given
    """
    if not location:
        return None

    if ABSOLUTE_URL_PATTERN.match(location):
        try:
            parts = urlsplit(location)
            port = parts.port
        except ValueError:
            return None
        if not parts.hostname:
            return None
        scheme = parts.scheme.lower()
        return RequestTarget(
            scheme=scheme,
            host=parts.hostname,
            port=port or DEFAULT_PORTS[scheme],
            path=parts.path or "/",
        )

    path = location if location.startswith("/") else f"/{location}"
    return RequestTarget(scheme=current.scheme, host=current.host, port=current.port, path=path)


def favicon_fingerprint(content: bytes) -> str:
    """Unsigned 32-bit MurmurHash3 of the base64 text, as a decimal string."""
    encoded = base64.b64encode(content).decode("ascii")
    return str(mmh3.hash(encoded, signed=False))


class HTTPScanner(BaseProbe):
    """
    HTTP(S) probes against one host.

    Certificates are never verified; redirects are followed by hand so
    that the hop limit and the Location resolution stay under control.
    """

    probe_name = "http"

    def __init__(self, timeout: float, logger: Optional[Logger] = None):
        super().__init__(logger)
        self.timeout = timeout
        self.ssl_context = unverified_context()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            verify=self.ssl_context,
            follow_redirects=False,
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
        )

    async def http_info(self, target: str) -> HttpInfo:
        """
        Derive a name and identifying headers from the host's web server.

        Plain HTTP on port 80 is tried first; HTTPS on 443 only when HTTP
        yielded neither a name nor any header.

        Args:
            target: IP address of the host

        Returns:
            HttpInfo; empty when neither scheme answered usefully
        """
        async with self._client() as client:
            info = await self._follow(client, RequestTarget("http", target, 80, "/"))
            if info.has_content():
                return info
            return await self._follow(client, RequestTarget("https", target, 443, "/"))

    async def favicon_hash(self, target: str) -> str:
        """
        Fingerprint /favicon.ico on port 80.

        The status code is not checked; an empty body yields "".
        """
        async with self._client() as client:
            content = await self._guarded(
                target,
                self._read(client, f"http://{target}:80/favicon.ico", MAX_FAVICON_BYTES),
                self.timeout,
                None,
            )
        if not content:
            return ""
        _, body = content
        if not body:
            return ""
        return favicon_fingerprint(body)

    async def _follow(self, client: httpx.AsyncClient, start: RequestTarget) -> HttpInfo:
        request_target = start
        for redirects_left in range(MAX_REDIRECTS, -1, -1):
            result = await self._guarded(
                request_target.host,
                self._read(client, request_target.url, MAX_BODY_BYTES),
                self.timeout,
                None,
            )
            if result is None:
                return HttpInfo()

            response, body = result
            if 300 <= response.status_code < 400 and redirects_left > 0:
                next_target = resolve_redirect(request_target, response.headers.get("location"))
                if next_target is not None:
                    self._log_debug(f"{request_target.url} redirects to {next_target.url}")
                    request_target = next_target
                    continue

            return self._describe(response, body)
        return HttpInfo()

    async def _read(self, client: httpx.AsyncClient, url: str, limit: int) -> Tuple[httpx.Response, bytes]:
        """Stream a GET response, keeping at most `limit` bytes of the body."""
        async with client.stream("GET", url) as response:
            body = bytearray()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) >= limit:
                    break
            return response, bytes(body[:limit])

    def _describe(self, response: httpx.Response, body: bytes) -> HttpInfo:
        server = response.headers.get("server", "").strip()
        powered_by = response.headers.get("x-powered-by", "").strip()
        www_authenticate = response.headers.get("www-authenticate", "").strip()

        title = extract_title(body.decode("utf-8", errors="replace"))
        name = ""
        if title and not is_meaningless_title(title):
            name = title
        else:
            server_name = normalize_name(server)
            if server_name and not is_meaningless_title(server_name):
                name = server_name

        return HttpInfo(
            name=name,
            server=server,
            powered_by=powered_by,
            www_authenticate=www_authenticate,
        )
