"""Decide what happens to ``report-uri`` for dialects that cannot report cross-origin."""

from __future__ import annotations

import re
from urllib.parse import SplitResult, urlsplit

import structlog

from csp_policy.compiler.browser_strategy import BrowserStrategy
from csp_policy.errors import PolicyBuildError

logger = structlog.get_logger()

FORWARD_REPORT_PATH = "/content_security_policy/forward_report"

_DEFAULT_PORTS = {"http": 80, "https": 443}

# Would end the report-uri clause early or split it into several URIs
_FORBIDDEN_URI_CHARS = re.compile(r"[\s;,]")


def _parse(uri: str) -> SplitResult:
    try:
        parts = urlsplit(uri)
        parts.port  # noqa: B018 - raises on an out-of-range or non-numeric port
    except ValueError as exc:
        raise PolicyBuildError(f"Invalid URI {uri!r}: {exc}") from exc
    return parts


def check_report_uri(report_uri: str) -> None:
    """Reject report URIs that cannot be emitted as a single header token."""
    if _FORBIDDEN_URI_CHARS.search(report_uri):
        raise PolicyBuildError(f"Invalid report URI {report_uri!r}: whitespace, ';' and ',' are not allowed")
    _parse(report_uri)


def _origin(parts: SplitResult, normalize_default_ports: bool) -> tuple[str, str | None, int | None]:
    port = parts.port
    if port is None and normalize_default_ports:
        port = _DEFAULT_PORTS.get(parts.scheme)
    return parts.scheme, parts.hostname, port


def is_same_origin(report_uri: str, request_url: str, normalize_default_ports: bool = False) -> bool:
    """Compare scheme, host and port of the two URLs.

    A report URI without a host is a bare path and never counts as same
    origin. Ports are compared as written unless ``normalize_default_ports``
    is set, so ``https://x`` and ``https://x:443`` differ by default.
    """
    report = _parse(report_uri)
    request = _parse(request_url)
    if not report.hostname:
        return False
    return _origin(report, normalize_default_ports) == _origin(request, normalize_default_ports)


def resolve_report_uri(
    report_uri: str | None,
    request_url: str,
    strategy: BrowserStrategy,
    forward_endpoint: bool,
    normalize_default_ports: bool = False,
) -> str | None:
    """Return the report URI to emit for this request, or None to omit it.

    The URI is validated for every dialect before any forwarding decision.
    """
    if not report_uri:
        return report_uri
    check_report_uri(report_uri)
    if not strategy.requires_report_forwarding:
        return report_uri
    if is_same_origin(report_uri, request_url, normalize_default_ports):
        return report_uri

    if forward_endpoint:
        logger.debug("csp_report_uri_forwarded", report_uri=report_uri, strategy=strategy.name)
        return FORWARD_REPORT_PATH
    logger.debug("csp_report_uri_dropped", report_uri=report_uri, strategy=strategy.name)
    return None
