"""Config loading utilities for seqgen."""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://counter.spsa.pitsolutions.com:8080/"


def default_data_dir() -> Path:
    return Path.home() / "VS" / "Extensions" / "Data"


def default_config_path() -> Path:
    return default_data_dir() / "seqgen.yaml"


class GeneratorConfig(BaseModel):
    """Configuration for the sequence generator."""

    base_url: str = DEFAULT_BASE_URL
    generate_path: str = "Home/Generate"
    cooldown_s: int = Field(default=24 * 60 * 60, ge=0)  # one day
    timeout_s: float = Field(default=5.0, gt=0)
    state_file: Path = Field(default_factory=lambda: default_data_dir() / "spsa.cfg")

    @property
    def cooldown(self) -> timedelta:
        return timedelta(seconds=self.cooldown_s)


def load_config_file(path: Path) -> dict[str, Any]:
    """Load a YAML config file as a dict.

    Returns empty dict if the file doesn't exist.
    """
    if not path.exists():
        logger.debug("No config found at %s; using defaults", path)
        return {}

    logger.info("Loading config from %s", path)
    with path.open() as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        logger.warning("%s did not contain a mapping; using defaults", path)
        return {}

    return data


def make_config(values: dict[str, Any], **overrides: Any) -> GeneratorConfig:
    """Build a GeneratorConfig from file values plus non-None *overrides*.

    Unknown keys are dropped with a warning instead of failing validation.
    """
    valid_fields = GeneratorConfig.model_fields
    filtered = {k: v for k, v in values.items() if k in valid_fields}

    if dropped := set(values) - set(filtered):
        logger.warning("Ignoring unknown config keys: %s", sorted(dropped))

    filtered.update({k: v for k, v in overrides.items() if v is not None})
    return GeneratorConfig(**filtered)


def load_config(path: Path | None = None, **overrides: Any) -> GeneratorConfig:
    return make_config(load_config_file(path or default_config_path()), **overrides)
