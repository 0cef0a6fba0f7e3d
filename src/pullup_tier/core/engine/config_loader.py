"""
YAML → typed settings loader.

Loads deployment settings from settings.yaml (bundled with the package) and
optionally merges user overrides from ~/.pullup-tier/settings.yaml.

Usage:
    from pullup_tier.core.engine.config_loader import get_settings
    settings = get_settings()
    interval = settings.ranking_interval_minutes

Scoring constants are not configurable here; they live in core/config.py
and are tied to TIER_LOGIC_VERSION.
"""

from __future__ import annotations

import importlib.resources
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..config import DEFAULT_PAGE_SIZE

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; return {} and warn on any error."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Ignoring settings file {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _user_home() -> Path:
    return Path(os.environ.get("HOME", "~")).expanduser() / ".pullup-tier"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Settings:
    """Deployment parameters for the store, the ranking job and logging."""

    data_dir: Path
    ranking_interval_minutes: int = 2
    page_size: int = DEFAULT_PAGE_SIZE
    log_level: str = "INFO"
    log_file: Path | None = None

    def __post_init__(self) -> None:
        if self.ranking_interval_minutes <= 0:
            raise ValueError("ranking.interval_minutes must be positive")
        if self.page_size <= 0:
            raise ValueError("ranking.page_size must be positive")


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled settings.yaml, or None if not found."""
    ref = importlib.resources.files("pullup_tier").joinpath("settings.yaml")
    if not ref.is_file():
        return None
    with importlib.resources.as_file(ref) as p:
        return p


def get_user_yaml_path() -> Path | None:
    """Return ~/.pullup-tier/settings.yaml if it exists, else None."""
    p = _user_home() / "settings.yaml"
    return p if p.exists() else None


def load_settings_dict() -> dict[str, Any]:
    """
    Load and merge settings from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/pullup_tier/settings.yaml
    2. User override at ~/.pullup-tier/settings.yaml

    Returns:
        Merged dict of settings sections. Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            config = _deep_merge(config, user_cfg)

    return config


def settings_from_dict(config: dict[str, Any]) -> Settings:
    """
    Build Settings from a merged settings dict, using defaults for gaps.

    ``store.data_dir`` may use ``~``; when absent it defaults to
    ~/.pullup-tier/data.
    """
    store = config.get("store") or {}
    ranking = config.get("ranking") or {}
    logging_cfg = config.get("logging") or {}

    data_dir = store.get("data_dir")
    log_file = logging_cfg.get("file")

    return Settings(
        data_dir=Path(data_dir).expanduser() if data_dir else _user_home() / "data",
        ranking_interval_minutes=int(ranking.get("interval_minutes", 2)),
        page_size=int(ranking.get("page_size", DEFAULT_PAGE_SIZE)),
        log_level=str(logging_cfg.get("level", "INFO")).upper(),
        log_file=Path(log_file).expanduser() if log_file else None,
    )


def get_settings() -> Settings:
    """Load settings from the bundled and user YAML files."""
    return settings_from_dict(load_settings_dict())
