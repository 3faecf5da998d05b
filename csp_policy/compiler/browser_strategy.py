"""Browser CSP dialects.

Each dialect fixes the header name, the no-config default header, the set of
directives it understands, how ``inline``/``eval`` are spelled, and whether
cross-origin report URIs must be forwarded. A strategy is resolved once per
compile and passed explicitly through the pipeline.
"""

from __future__ import annotations

import abc
from typing import Final

from csp_policy.models.policy import BrowserFamily, Directive

STANDARD_HEADER_NAME: Final[str] = "Content-Security-Policy"
WEBKIT_HEADER_NAME: Final[str] = "X-WebKit-CSP"
FIREFOX_HEADER_NAME: Final[str] = "X-Content-Security-Policy"

WEBKIT_DEFAULT_HEADER: Final[str] = (
    "default-src https: data: 'unsafe-inline' 'unsafe-eval'; "
    "frame-src https://* about: javascript:; "
    "img-src chrome-extension:"
)
FIREFOX_DEFAULT_HEADER: Final[str] = (
    "options eval-script inline-script; "
    "allow https://* data:; "
    "frame-src https://* about: javascript:; "
    "img-src chrome-extension:"
)

BASE_DIRECTIVES: Final[frozenset[Directive]] = frozenset({
    Directive.DEFAULT_SRC,
    Directive.SCRIPT_SRC,
    Directive.FRAME_SRC,
    Directive.STYLE_SRC,
    Directive.IMG_SRC,
    Directive.MEDIA_SRC,
    Directive.FONT_SRC,
    Directive.OBJECT_SRC,
    Directive.CONNECT_SRC,
})
FIREFOX_DIRECTIVES: Final[frozenset[Directive]] = (
    BASE_DIRECTIVES | {Directive.XHR_SRC, Directive.FRAME_ANCESTORS}
) - {Directive.CONNECT_SRC}

# Firefox's legacy dialect spells these as keywords of the ``options`` directive
_FIREFOX_OPTION_TOKENS: Final[tuple[str, ...]] = ("inline-script", "eval-script")

# ``options`` applies to scripts only; keywords found here are dropped, not promoted
_FIREFOX_NON_SCRIPT_DIRECTIVES: Final[frozenset[Directive]] = frozenset({Directive.STYLE_SRC})


def render_clause(name: str, tokens: list[str]) -> str:
    """Render ``name tok tok; ``, or a bare ``name; `` when there are no tokens."""
    if tokens:
        return f"{name} {' '.join(tokens)}; "
    return f"{name}; "


class BrowserStrategy(abc.ABC):
    """Dialect-specific facts and formatting for one browser family."""

    family: BrowserFamily
    header_name: str
    default_header_value: str
    supported_directives: frozenset[Directive]
    requires_report_forwarding: bool = False

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abc.abstractmethod
    def quote_inline_eval(self, token: str) -> str:
        """Translate ``inline`` or ``eval`` into this dialect's literal."""
        ...

    def filter_directives(self, directives: dict[Directive, list[str]]) -> dict[Directive, list[str]]:
        """Drop directives this dialect does not support."""
        return {k: v for k, v in directives.items() if k in self.supported_directives}

    def build_prefix(self, default_src: list[str], directives: dict[Directive, list[str]]) -> str:
        """Render the ``default-src`` clause that opens the header."""
        return render_clause(Directive.DEFAULT_SRC.value, default_src)

    def __repr__(self) -> str:
        return f"<{self.name} header={self.header_name!r}>"


class StandardStrategy(BrowserStrategy):
    family = BrowserFamily.STANDARD
    header_name = STANDARD_HEADER_NAME
    default_header_value = WEBKIT_DEFAULT_HEADER
    supported_directives = BASE_DIRECTIVES

    def quote_inline_eval(self, token: str) -> str:
        return "'unsafe-inline'" if token == "inline" else "'unsafe-eval'"


class WebKitStrategy(StandardStrategy):
    family = BrowserFamily.WEBKIT
    header_name = WEBKIT_HEADER_NAME


class FirefoxStrategy(BrowserStrategy):
    """Pre-standard Firefox dialect.

    Uses ``allow`` in place of ``default-src`` and moves the script keywords
    into a separate ``options`` directive. Cross-origin report URIs are not
    delivered reliably, so they have to be forwarded or dropped.
    """

    family = BrowserFamily.FIREFOX
    header_name = FIREFOX_HEADER_NAME
    default_header_value = FIREFOX_DEFAULT_HEADER
    supported_directives = FIREFOX_DIRECTIVES
    requires_report_forwarding = True

    def quote_inline_eval(self, token: str) -> str:
        return "inline-script" if token == "inline" else "eval-script"

    def build_prefix(self, default_src: list[str], directives: dict[Directive, list[str]]) -> str:
        options: list[str] = []

        def _extract(tokens: list[str], promote: bool = True) -> list[str]:
            kept = []
            for token in tokens:
                if token in _FIREFOX_OPTION_TOKENS:
                    if promote and token not in options:
                        options.append(token)
                else:
                    kept.append(token)
            return kept

        allow = _extract(default_src)
        for directive, tokens in directives.items():
            directives[directive] = _extract(tokens, promote=directive not in _FIREFOX_NON_SCRIPT_DIRECTIVES)

        header_value = render_clause("allow", allow)
        if options:
            header_value += render_clause("options", options)
        return header_value


STANDARD: Final[BrowserStrategy] = StandardStrategy()
WEBKIT: Final[BrowserStrategy] = WebKitStrategy()
FIREFOX: Final[BrowserStrategy] = FirefoxStrategy()

_STRATEGIES: Final[dict[BrowserFamily, BrowserStrategy]] = {
    BrowserFamily.STANDARD: STANDARD,
    BrowserFamily.WEBKIT: WEBKIT,
    BrowserFamily.FIREFOX: FIREFOX,
}


def resolve_strategy(family: BrowserFamily | str | None) -> BrowserStrategy:
    """Return the strategy for ``family``; unknown families get Standard."""
    try:
        return _STRATEGIES[BrowserFamily(family)]
    except (ValueError, KeyError):
        return STANDARD
