"""Settings: formatter budget, extra type imports and log level, loaded from YAML."""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from powerassert.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_VAR = "POWERASSERT_CONFIG"
DEFAULT_FILE = "powerassert.yaml"

_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseModel):
    length_hint: int = Field(100, ge=10)
    # simple name -> dotted path, e.g. {"Point": "geometry.Point"}
    imports: dict[str, str] = Field(default_factory=dict)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LEVELS:
            raise ValueError(f"unknown log level {v!r}")
        return level


def _settings_path(path: Union[str, Path, None]) -> Optional[Path]:
    if path is not None:
        return Path(path)
    env = os.environ.get(ENV_VAR)
    if env:
        return Path(env)
    local = Path(DEFAULT_FILE)
    return local if local.exists() else None


def load_settings(path: Union[str, Path, None] = None) -> Settings:
    """Load settings from ``path``, $POWERASSERT_CONFIG or ./powerassert.yaml; defaults when none exists."""
    resolved = _settings_path(path)
    if resolved is None:
        return Settings()
    if not resolved.exists():
        raise ConfigError(f"config file not found: {resolved}")
    try:
        with open(resolved, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        raise ConfigError(
            f"invalid YAML: {getattr(e, 'problem', None) or e}",
            mark.line + 1 if mark else None,
            mark.column + 1 if mark else None,
            str(resolved),
        ) from e
    if not isinstance(data, dict):
        raise ConfigError("config must be a mapping", source=str(resolved))
    try:
        settings = Settings(**data)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(p) for p in first["loc"])
        raise ConfigError(f"{where}: {first['msg']}", source=str(resolved)) from e
    logger.debug("loaded settings from %s", resolved)
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
