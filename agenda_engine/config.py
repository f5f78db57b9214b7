"""Configuration for agenda bucketing and display flags."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "AGENDA_ENGINE_CONFIG"


# ─── Config Schema ─────────────────────────────────────────────────
class SectionsConfig(BaseModel):
    # morning starts at midnight; each bound is inclusive of its own hour
    afternoon_start: int = Field(12, ge=1, le=23)
    evening_start: int = Field(17, ge=1, le=24)

    @model_validator(mode="after")
    def _ordered(self) -> "SectionsConfig":
        if self.afternoon_start >= self.evening_start:
            raise ValueError("afternoon_start must be earlier than evening_start")
        return self


class DisplayConfig(BaseModel):
    soon_hours: int = Field(3, ge=1, le=24)


class AgendaConfig(BaseModel):
    sections: SectionsConfig = SectionsConfig()
    display: DisplayConfig = DisplayConfig()


DEFAULT_CONFIG = AgendaConfig()


def load_config(path: Optional[str | Path] = None) -> AgendaConfig:
    """Load an ``AgendaConfig`` from TOML, falling back to defaults.

    The path defaults to ``$AGENDA_ENGINE_CONFIG``. A missing file means
    defaults; a file that fails to parse or validate is reported and
    defaults are used instead.
    """

    if path is None:
        path = os.getenv(CONFIG_ENV_VAR)
    if not path:
        return AgendaConfig()

    config_path = Path(path).expanduser()
    if not config_path.exists():
        logger.info("No config at %s; using defaults", config_path)
        return AgendaConfig()

    try:
        with open(config_path, "rb") as handle:
            data = tomllib.load(handle)
        return AgendaConfig.model_validate(data)
    except (ValidationError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Config error in %s: %s; using defaults", config_path, exc)
        return AgendaConfig()
