"""Pydantic model for runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from formcache.config.hierarchy import load_config_hierarchy


class FormCacheSettings(BaseModel):
    server_url: str
    request_timeout: float = Field(gt=0)
    db_path: Path
    initial_check_delay: float = Field(ge=0)
    check_interval: float = Field(gt=0)
    log_level: str = "WARNING"


def load_settings(**overrides: Any) -> FormCacheSettings:
    """Resolve the config hierarchy and validate it."""
    config = load_config_hierarchy(**overrides)
    known = {k: v for k, v in config.items() if k in FormCacheSettings.model_fields}
    return FormCacheSettings(**known)
