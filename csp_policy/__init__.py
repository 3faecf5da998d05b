"""
csp-policy - browser-dialect aware Content-Security-Policy header compiler
"""

__version__ = "0.1.0"

from csp_policy.compiler.policy_compiler import ContentSecurityPolicy, PolicyCompiler
from csp_policy.errors import PolicyBuildError
from csp_policy.models.policy import BrowserFamily, CompiledPolicy, Directive, PolicyInput, RequestContext

__all__ = [
    "BrowserFamily",
    "CompiledPolicy",
    "ContentSecurityPolicy",
    "Directive",
    "PolicyBuildError",
    "PolicyCompiler",
    "PolicyInput",
    "RequestContext",
]
