"""Starlette middleware that sets a browser-specific CSP header."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from csp_policy import logging_config
from csp_policy.compiler.policy_compiler import ContentSecurityPolicy, PolicyCompiler
from csp_policy.config.loader import get_settings, load_policy_file
from csp_policy.errors import PolicyBuildError
from csp_policy.models.policy import BrowserFamily, RequestContext

logger = structlog.get_logger()


def browser_family_from_user_agent(user_agent: str | None) -> BrowserFamily:
    """Coarse dialect hint from a User-Agent string.

    Only distinguishes the legacy engines the compiler has dialects for;
    anything unrecognized is treated as a standards-compliant browser.

    Every Firefox UA maps to the pre-standard ``X-Content-Security-Policy``
    dialect and every WebKit/Blink UA (Safari, Chrome, Edge) to
    ``X-WebKit-CSP``. Current releases of those browsers ignore both legacy
    headers and only honour ``Content-Security-Policy``, so this mapping
    suits legacy browser fleets; the middleware's ``legacy_dialects=False``
    skips it and always emits the standard header.
    """
    ua = (user_agent or "").lower()
    if "firefox/" in ua and "seamonkey" not in ua:
        return BrowserFamily.FIREFOX
    if "applewebkit/" in ua:
        return BrowserFamily.WEBKIT
    return BrowserFamily.STANDARD


def request_context_from(request: Request, legacy_dialects: bool = True) -> RequestContext:
    family = BrowserFamily.STANDARD
    if legacy_dialects:
        family = browser_family_from_user_agent(request.headers.get("user-agent"))
    return RequestContext(
        is_ssl=request.url.scheme in ("https", "wss"),
        url=str(request.url),
        browser_family=family,
    )


class ContentSecurityPolicyMiddleware(BaseHTTPMiddleware):
    """Attach a Content-Security-Policy header compiled for each request.

    - Policy comes from ``policy`` or, when omitted, the configured policy file
    - Header name follows the browser dialect (standard, WebKit or Firefox),
      or is always the standard one with ``legacy_dialects=False``
    - A header already set by the endpoint is left alone
    - Build failures are logged and the response goes out without the header
    - ``configure_logging=True`` sets up structlog from ``CSP_LOG_LEVEL``/``CSP_LOG_JSON``
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        policy: Mapping[str, Any] | str | None = None,
        compiler: PolicyCompiler | None = None,
        configure_logging: bool = False,
        legacy_dialects: bool = True,
    ) -> None:
        super().__init__(app)
        settings = get_settings()
        if configure_logging:
            logging_config.configure_logging(settings)
        self._policy = policy if policy is not None else load_policy_file(settings.policy_file)
        self._experimental = settings.experimental
        self._compiler = compiler or PolicyCompiler(settings)
        self._legacy_dialects = legacy_dialects

    async def dispatch(  # type: ignore[override]
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        context = request_context_from(request, self._legacy_dialects)
        try:
            csp = ContentSecurityPolicy(
                context,
                self._policy or None,
                experimental=self._experimental,
                compiler=self._compiler,
            )
            name, value = csp.header()
        except PolicyBuildError as exc:
            logger.error("csp_header_error", error=str(exc), path=request.url.path)
            return response
        response.headers.setdefault(name, value)
        return response
