"""Policy compile pipeline: strategy, normalize, fill, report endpoint, assemble."""

from csp_policy.compiler.browser_strategy import BrowserStrategy, resolve_strategy
from csp_policy.compiler.policy_compiler import ContentSecurityPolicy, PolicyCompiler

__all__ = ["BrowserStrategy", "ContentSecurityPolicy", "PolicyCompiler", "resolve_strategy"]
