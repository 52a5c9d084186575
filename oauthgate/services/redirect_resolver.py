"""
Callback URL resolution for requests arriving through reverse proxies.

A backend listening on plain HTTP behind a TLS-terminating proxy must still
advertise the public ``https://`` origin to the provider. Scheme, host and port
are resolved independently from forwarding headers, in this order:

    scheme: Forwarded proto=, X-Forwarded-Proto, X-Forwarded-Scheme,
            TLS connection (tls extension or https scope),
            public base URL, "https"
    host:   Forwarded host=, X-Forwarded-Host, Host header, public base URL
    port:   X-Forwarded-Port, appended only when the host carries no port

Resolution is a pure function of the request and the configured base URL, so
it is safe to call concurrently.
"""
from typing import Mapping, Optional
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from starlette.requests import HTTPConnection

HEADER_FORWARDED = "forwarded"
HEADER_X_FORWARDED_PROTO = "x-forwarded-proto"
HEADER_X_FORWARDED_SCHEME = "x-forwarded-scheme"
HEADER_X_FORWARDED_HOST = "x-forwarded-host"
HEADER_X_FORWARDED_PORT = "x-forwarded-port"

FORWARDED_PROTO = "proto"
FORWARDED_HOST = "host"
DEFAULT_SCHEME = "https"


def first_header_value(header_value: Optional[str]) -> str:
    """Return the first non-empty comma-separated token of a header."""
    if not header_value:
        return ""
    for segment in header_value.split(","):
        trimmed = segment.strip()
        if trimmed:
            return trimmed
    return ""


def forwarded_directive(header_value: Optional[str], name: str) -> str:
    """
    Extract a directive from an RFC 7239 ``Forwarded`` header.

    The header is a comma-separated list of groups, each a semicolon-separated
    list of ``key=value`` pairs. The value from the first group that defines
    ``name`` wins; surrounding quotes are removed.
    """
    if not header_value:
        return ""
    for group in header_value.split(","):
        for pair in group.split(";"):
            key, sep, value = pair.strip().partition("=")
            if not sep or key.strip().lower() != name:
                continue
            value = value.strip().strip('"').strip()
            if value:
                return value
    return ""


def _has_port(host: str) -> bool:
    # "[::1]" has colons but no port; "[::1]:8080" and "example.com:80" do
    if host.startswith("["):
        return "]:" in host
    return ":" in host


class RedirectResolver:
    """Computes the externally visible callback URL for a request."""

    def __init__(self, public_base_url: str, callback_path: str):
        self.public_base_url = public_base_url
        self.callback_path = callback_path
        self._base: SplitResult = urlsplit(public_base_url)
        self.static_callback_url = urljoin(public_base_url, callback_path)

    def callback_url(self, request: Optional[HTTPConnection]) -> str:
        """
        Absolute callback URL to register with the provider for this request.

        Without a request the statically configured base URL is used.
        """
        base = self.effective_base_url(request)
        return urljoin(urlunsplit(base), self.callback_path)

    def effective_base_url(self, request: Optional[HTTPConnection]) -> SplitResult:
        if request is None:
            return self._base

        headers = request.headers
        scheme = self.resolve_scheme(request)
        host = self.resolve_host(request)
        if not host:
            return self._base

        port = self.resolve_port(headers)
        if port and not _has_port(host):
            host = f"{host}:{port}"

        return self._base._replace(scheme=scheme, netloc=host)

    def resolve_scheme(self, request: HTTPConnection) -> str:
        headers = request.headers

        forwarded = forwarded_directive(headers.get(HEADER_FORWARDED), FORWARDED_PROTO)
        if forwarded:
            return forwarded.lower()

        proto = first_header_value(headers.get(HEADER_X_FORWARDED_PROTO))
        if proto:
            return proto.lower()

        scheme = first_header_value(headers.get(HEADER_X_FORWARDED_SCHEME))
        if scheme:
            return scheme.lower()

        if self.is_tls(request):
            return DEFAULT_SCHEME

        if self._base.scheme:
            return self._base.scheme.lower()

        return DEFAULT_SCHEME

    @staticmethod
    def is_tls(request: HTTPConnection) -> bool:
        # ASGI servers always fill in "scheme", so a plain "http" says nothing
        # about what the browser used; only TLS evidence counts here
        if "tls" in request.scope.get("extensions", {}):
            return True
        return str(request.scope.get("scheme", "")).lower() in ("https", "wss")

    def resolve_host(self, request: HTTPConnection) -> str:
        headers = request.headers

        forwarded = forwarded_directive(headers.get(HEADER_FORWARDED), FORWARDED_HOST)
        if forwarded:
            return forwarded

        host = first_header_value(headers.get(HEADER_X_FORWARDED_HOST))
        if host:
            return host

        host_header = headers.get("host", "").strip()
        if host_header:
            return host_header

        return self._base.netloc

    def resolve_port(self, headers: Mapping[str, str]) -> str:
        return first_header_value(headers.get(HEADER_X_FORWARDED_PORT))
