"""Render the working directive map as a header value."""

from __future__ import annotations

from csp_policy.compiler.browser_strategy import BrowserStrategy, render_clause
from csp_policy.errors import PolicyBuildError
from csp_policy.models.policy import Directive

DATA_TOKEN = "data:"


def ensure_img_data(directives: dict[Directive, list[str]]) -> None:
    """Make sure ``img-src`` allows ``data:`` URIs."""
    tokens = directives.get(Directive.IMG_SRC)
    if tokens is None:
        directives[Directive.IMG_SRC] = [DATA_TOKEN]
    elif DATA_TOKEN not in tokens:
        directives[Directive.IMG_SRC] = [*tokens, DATA_TOKEN]


def render_directive(directive: Directive, tokens: list[str]) -> str:
    return render_clause(directive.value, tokens)


def assemble_header(
    directives: dict[Directive, list[str]],
    report_uri: str | None,
    strategy: BrowserStrategy,
) -> str:
    """Build the final header value.

    ``default-src`` is mandatory and rendered first through the strategy's
    prefix builder. The remaining directives follow in lexicographic order of
    their hyphenated names, then the optional ``report-uri`` clause.
    """
    try:
        default_src = directives.pop(Directive.DEFAULT_SRC)
    except KeyError:
        raise PolicyBuildError("Expected to find default-src directive value") from None

    prefix = strategy.build_prefix(default_src, directives)
    ensure_img_data(directives)

    generic = "".join(
        render_directive(directive, directives[directive])
        for directive in sorted(directives, key=lambda d: d.value)
    )
    report = f"report-uri {report_uri};" if report_uri else ""
    return (prefix + generic + report).strip()
