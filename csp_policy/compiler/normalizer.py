"""Token normalization: split raw directive strings and quote keywords."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from csp_policy.compiler.browser_strategy import BrowserStrategy
from csp_policy.models.policy import Directive

_INLINE_EVAL = frozenset({"inline", "eval"})
_QUOTED_KEYWORDS = frozenset({"self", "none"})


def translate_token(token: str, strategy: BrowserStrategy) -> str:
    """Rewrite ``inline``/``eval``/``self``/``none``; pass anything else through."""
    if token in _INLINE_EVAL:
        return strategy.quote_inline_eval(token)
    if token in _QUOTED_KEYWORDS:
        return f"'{token}'"
    return token


def split_tokens(value: str | Iterable[str]) -> list[str]:
    if isinstance(value, str):
        return value.split()
    return list(value)


def normalize_directives(
    directives: Mapping[Directive, str | Iterable[str]],
    strategy: BrowserStrategy,
) -> dict[Directive, list[str]]:
    """Return a fresh working map of directive -> dialect-correct token list."""
    return {
        directive: [translate_token(token, strategy) for token in split_tokens(value)]
        for directive, value in directives.items()
    }
