"""YAML policy + env var settings loading with pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()

DEFAULT_POLICY_PATH = Path(__file__).parent / "default_policy.yaml"


def load_policy_file(path: str | Path) -> dict[str, Any]:
    """Load a YAML policy mapping, returning empty dict if the file is absent."""
    path = Path(path)
    if not path.exists():
        logger.warning("csp_policy_file_not_found", path=str(path))
        return {}
    with open(path) as f:
        policy = yaml.safe_load(f) or {}
    if not isinstance(policy, dict):
        raise ValueError(f"Policy file {path} must contain a mapping, got {type(policy).__name__}")
    return policy


class PolicySettings(BaseSettings):
    """Compiler settings, overridable through ``CSP_*`` env vars."""

    model_config = SettingsConfigDict(
        env_prefix="CSP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "info"
    log_json: bool = True

    # Merge the ``experimental`` sub-mapping of a policy over its top level
    experimental: bool = False

    # Treat https://x and https://x:443 as the same report origin
    normalize_default_ports: bool = False

    policy_file: str = str(DEFAULT_POLICY_PATH)

    # Compiled policies memoized per PolicyCompiler; 0 disables
    compile_cache_size: int = 256


_settings: PolicySettings | None = None


def get_settings() -> PolicySettings:
    """Get or create the singleton settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def load_settings() -> PolicySettings:
    """Load settings from env vars (env vars override model defaults)."""
    global _settings
    _settings = PolicySettings()
    logger.info(
        "config_loaded",
        experimental=_settings.experimental,
        policy_file=_settings.policy_file,
    )
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (for testing)."""
    global _settings
    _settings = None
