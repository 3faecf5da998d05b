"""Post-normalization enrichment of the working directive map."""

from __future__ import annotations

import structlog

from csp_policy.compiler.browser_strategy import BrowserStrategy
from csp_policy.models.policy import Directive, PolicyOptions

logger = structlog.get_logger()

CHROME_EXTENSION_TOKEN = "chrome-extension:"


def filter_unsupported_directives(
    directives: dict[Directive, list[str]], strategy: BrowserStrategy
) -> dict[Directive, list[str]]:
    filtered = strategy.filter_directives(directives)
    dropped = sorted(d.value for d in directives.keys() - filtered.keys())
    if dropped:
        logger.debug("csp_directives_filtered", strategy=strategy.name, dropped=dropped)
    return filtered


def propagate_default_src(directives: dict[Directive, list[str]], strategy: BrowserStrategy) -> None:
    """Copy ``default-src`` into every supported directive that is unset."""
    default = directives.get(Directive.DEFAULT_SRC)
    if default is None:
        return
    for directive in strategy.supported_directives:
        if directive not in directives:
            directives[directive] = list(default)


def add_chrome_extension(directives: dict[Directive, list[str]]) -> None:
    for tokens in directives.values():
        if CHROME_EXTENSION_TOKEN not in tokens:
            tokens.append(CHROME_EXTENSION_TOKEN)


def append_http_additions(
    directives: dict[Directive, list[str]],
    strategy: BrowserStrategy,
    http_additions: dict[Directive, str],
) -> None:
    for directive, token in http_additions.items():
        if directive not in strategy.supported_directives:
            logger.debug("csp_http_addition_skipped", directive=directive.value, strategy=strategy.name)
            continue
        directives.setdefault(directive, []).append(token)


def fill_directives(
    directives: dict[Directive, list[str]],
    strategy: BrowserStrategy,
    options: PolicyOptions,
    is_ssl: bool,
) -> dict[Directive, list[str]]:
    """Apply default propagation, extension augmentation and HTTP additions.

    The steps run in that order and mutate ``directives`` in place, so
    directives filled from ``default-src`` also receive the later tokens.
    """
    if not options.disable_fill_missing:
        propagate_default_src(directives, strategy)
    if not options.disable_chrome_extension:
        add_chrome_extension(directives)
    if not is_ssl and options.http_additions:
        append_http_additions(directives, strategy, options.http_additions)
    return directives
