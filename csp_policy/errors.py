"""Errors raised while building a Content-Security-Policy header."""

from __future__ import annotations


class PolicyBuildError(Exception):
    """Raised when a CSP header value cannot be compiled.

    Every failure inside the compile pipeline surfaces as this type, with the
    originating exception attached as ``__cause__``.
    """
