"""Layered configuration: defaults, then config files, then env, then CLI.

Files are read in this order, later ones winning:
``~/.formcache/config.yaml`` and the nearest ``formcache.yaml`` found
from the working directory upward. ``FORMCACHE_*`` variables override
both. Values stay raw here; ``FormCacheSettings`` validates and coerces.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

from formcache.config.defaults import get_defaults

logger = logging.getLogger(__name__)

_GLOBAL_CONFIG_PATH = Path.home() / ".formcache" / "config.yaml"
_PROJECT_CONFIG_NAME = "formcache.yaml"
_ENV_PREFIX = "FORMCACHE_"

_ENV_MAP: dict[str, str] = {
    f"{_ENV_PREFIX}{key.upper()}": key for key in get_defaults()
}


def load_config_hierarchy(**runtime_overrides: Any) -> dict[str, Any]:
    """Merge every configuration layer. ``None`` overrides are ignored."""
    config = get_defaults()
    for path in _config_files():
        config.update(_load_yaml_config(path) or {})
    config.update(
        {key: os.environ[env] for env, key in _ENV_MAP.items() if env in os.environ}
    )
    config.update({k: v for k, v in runtime_overrides.items() if v is not None})
    return config


def _config_files() -> Iterator[Path]:
    yield _GLOBAL_CONFIG_PATH
    cwd = Path.cwd()
    for directory in (cwd, *cwd.parents):
        candidate = directory / _PROJECT_CONFIG_NAME
        if candidate.is_file():
            yield candidate
            return


def _load_yaml_config(path: Path) -> dict[str, Any] | None:
    if not path.is_file():
        return None
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load config %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, ignoring", path)
        return None
    return data
