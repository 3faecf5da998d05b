"""Compile a policy configuration into a browser-specific CSP header."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Mapping
from typing import Any

import structlog

from csp_policy.compiler.assembler import assemble_header
from csp_policy.compiler.browser_strategy import BrowserStrategy, resolve_strategy
from csp_policy.compiler.filler import fill_directives, filter_unsupported_directives
from csp_policy.compiler.normalizer import normalize_directives
from csp_policy.compiler.report_endpoint import resolve_report_uri
from csp_policy.config.loader import PolicySettings, get_settings
from csp_policy.errors import PolicyBuildError
from csp_policy.models.policy import CompiledPolicy, PolicyInput, RequestContext

logger = structlog.get_logger()


class PolicyCompiler:
    """Runs the compile pipeline, with an optional bounded result cache.

    The cache is keyed by the policy input plus the request facts that affect
    the output (SSL flag, URL, browser family). A compiler may be shared
    between requests; ``PolicyInput`` is never mutated.
    """

    def __init__(self, settings: PolicySettings | None = None, cache_size: int | None = None) -> None:
        settings = settings or get_settings()
        self._normalize_default_ports = settings.normalize_default_ports
        self._cache_size = settings.compile_cache_size if cache_size is None else cache_size
        self._cache: OrderedDict[tuple, CompiledPolicy] = OrderedDict()

    def compile(self, policy: PolicyInput | None, request: RequestContext) -> CompiledPolicy:
        try:
            strategy = resolve_strategy(request.browser_family)
            if policy is None:
                return CompiledPolicy(strategy.header_name, strategy.default_header_value)
            if policy.raw is not None:
                return CompiledPolicy(strategy.header_name, policy.raw, enforce=policy.options.enforce)

            key = (policy.cache_key(), request.is_ssl, request.url, strategy.family)
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return cached

            compiled = self._build(policy, request, strategy)
        except Exception as exc:
            logger.error("csp_build_failed", error=str(exc), url=request.url)
            raise PolicyBuildError(f"Couldn't build CSP header: {exc}") from exc

        self._remember(key, compiled)
        return compiled

    def _build(self, policy: PolicyInput, request: RequestContext, strategy: BrowserStrategy) -> CompiledPolicy:
        directives = normalize_directives(policy.directives, strategy)
        directives = filter_unsupported_directives(directives, strategy)
        directives = fill_directives(directives, strategy, policy.options, request.is_ssl)
        report_uri = resolve_report_uri(
            policy.report_uri,
            request.url,
            strategy,
            policy.options.forward_endpoint,
            normalize_default_ports=self._normalize_default_ports,
        )
        value = assemble_header(directives, report_uri, strategy)
        logger.debug("csp_compiled", strategy=strategy.name, header=strategy.header_name)
        return CompiledPolicy(
            header_name=strategy.header_name,
            value=value,
            enforce=policy.options.enforce,
            report_uri=report_uri,
        )

    def _remember(self, key: tuple, compiled: CompiledPolicy) -> None:
        if self._cache_size <= 0:
            return
        self._cache[key] = compiled
        while len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)

    def clear_cache(self) -> None:
        self._cache.clear()


class ContentSecurityPolicy:
    """CSP header for a single request.

    ``config`` may be a policy mapping, an already-built header string (used
    verbatim) or None (the dialect's default header). The compiled value is
    memoized on the instance, so one instance must not be shared between
    requests.
    """

    def __init__(
        self,
        request: RequestContext,
        config: Mapping[str, Any] | str | None = None,
        experimental: bool | None = None,
        compiler: PolicyCompiler | None = None,
    ) -> None:
        self.request = request
        self._compiler = compiler or PolicyCompiler()
        self._strategy = resolve_strategy(request.browser_family)
        self._compiled: CompiledPolicy | None = None

        if experimental is None:
            experimental = get_settings().experimental
        self.experimental = experimental

        if config is None:
            self.policy: PolicyInput | None = None
        elif isinstance(config, str):
            self.policy = PolicyInput.from_header(config)
        else:
            try:
                self.policy = PolicyInput.from_config(config, experimental=experimental)
            except (TypeError, ValueError) as exc:
                raise PolicyBuildError(f"Invalid CSP configuration: {exc}") from exc

    @property
    def name(self) -> str:
        return self._strategy.header_name

    @property
    def enforce(self) -> bool:
        return self.policy.options.enforce if self.policy is not None else False

    def compile(self) -> CompiledPolicy:
        if self._compiled is None:
            self._compiled = self._compiler.compile(self.policy, self.request)
        return self._compiled

    def value(self) -> str:
        return self.compile().value

    def header(self) -> tuple[str, str]:
        return self.compile().as_header()
