"""Request builders shared by the test modules."""

from __future__ import annotations

from csp_policy.models.policy import BrowserFamily, RequestContext


def make_request(
    family: BrowserFamily = BrowserFamily.STANDARD,
    url: str = "https://app.example/page",
    is_ssl: bool | None = None,
) -> RequestContext:
    if is_ssl is None:
        is_ssl = url.startswith("https:")
    return RequestContext(is_ssl=is_ssl, url=url, browser_family=family)
