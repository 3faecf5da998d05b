"""Pydantic models and value types for CSP policy compilation."""

from __future__ import annotations

import enum
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger()


class Directive(str, enum.Enum):
    """Universal set of CSP directives understood by the compiler."""

    DEFAULT_SRC = "default-src"
    SCRIPT_SRC = "script-src"
    FRAME_SRC = "frame-src"
    STYLE_SRC = "style-src"
    IMG_SRC = "img-src"
    MEDIA_SRC = "media-src"
    FONT_SRC = "font-src"
    OBJECT_SRC = "object-src"
    CONNECT_SRC = "connect-src"
    XHR_SRC = "xhr-src"
    FRAME_ANCESTORS = "frame-ancestors"

    @property
    def config_key(self) -> str:
        """Underscore form used in configuration mappings (``script_src``)."""
        return self.value.replace("-", "_")

    @classmethod
    def from_key(cls, key: str | Directive) -> Directive:
        """Accept ``script_src``, ``script-src`` or a member."""
        if isinstance(key, Directive):
            return key
        return cls(str(key).strip().lower().replace("_", "-"))


class BrowserFamily(str, enum.Enum):
    """Browser dialect families, already resolved from the user agent."""

    STANDARD = "standard"
    WEBKIT = "webkit"
    FIREFOX = "firefox"


_OPTION_KEYS = (
    "enforce",
    "http_additions",
    "disable_chrome_extension",
    "disable_fill_missing",
    "forward_endpoint",
)


def _directive_keyed(value: Any) -> Any:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return {Directive.from_key(k): v for k, v in value.items()}
    return value


class PolicyOptions(BaseModel):
    """Meta options that steer the pipeline but are not directives."""

    model_config = ConfigDict(frozen=True)

    enforce: bool = False
    http_additions: dict[Directive, str] = Field(default_factory=dict)
    disable_chrome_extension: bool = False
    disable_fill_missing: bool = False
    forward_endpoint: bool = False

    @field_validator("http_additions", mode="before")
    @classmethod
    def _key_http_additions(cls, value: Any) -> Any:
        return _directive_keyed(value)


class PolicyInput(BaseModel):
    """Immutable policy configuration for one compile.

    ``raw`` holds an externally supplied header value; when set, the compiler
    returns it verbatim and ignores everything else.
    """

    model_config = ConfigDict(frozen=True)

    directives: dict[Directive, str | tuple[str, ...]] = Field(default_factory=dict)
    report_uri: str | None = None
    options: PolicyOptions = Field(default_factory=PolicyOptions)
    raw: str | None = None

    @field_validator("directives", mode="before")
    @classmethod
    def _key_directives(cls, value: Any) -> Any:
        return _directive_keyed(value)

    @classmethod
    def from_header(cls, raw: str) -> PolicyInput:
        return cls(raw=raw)

    @classmethod
    def from_config(cls, config: Mapping[str, Any], experimental: bool = False) -> PolicyInput:
        """Build a policy input from a configuration mapping.

        With ``experimental`` enabled, the nested ``experimental`` mapping
        replaces ``http_additions`` outright and its remaining keys override
        the top level. Otherwise the nested mapping is discarded.
        """
        config = dict(config)
        experimental_config = config.pop("experimental", None)
        if experimental_config is not None and not isinstance(experimental_config, Mapping):
            raise ValueError(f"experimental must be a mapping, got {type(experimental_config).__name__}")
        if experimental and experimental_config:
            config["http_additions"] = experimental_config.get("http_additions")
            config.update(experimental_config)

        options = {}
        for name in _OPTION_KEYS:
            value = config.pop(name, None)
            if value is not None:
                options[name] = value

        report_uri = config.pop("report_uri", None)

        directives: dict[Directive, Any] = {}
        for key, value in config.items():
            try:
                directive = Directive.from_key(key)
            except ValueError:
                logger.warning("csp_unknown_config_key", key=key)
                continue
            directives[directive] = value

        return cls(
            directives=directives,
            report_uri=report_uri or None,
            options=PolicyOptions(**options),
        )

    def cache_key(self) -> str:
        """Stable string identity of this input, for explicit memoization."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True)


@dataclass(frozen=True)
class RequestContext:
    """Read-only view of the request a policy is compiled for."""

    is_ssl: bool
    url: str
    browser_family: BrowserFamily = BrowserFamily.STANDARD


@dataclass(frozen=True)
class CompiledPolicy:
    """Result of compiling a policy: one header name/value pair."""

    header_name: str
    value: str
    enforce: bool = False
    report_uri: str | None = None

    def as_header(self) -> tuple[str, str]:
        return self.header_name, self.value
