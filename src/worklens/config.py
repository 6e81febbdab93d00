# src/worklens/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

- One Settings object for the whole app.
- Nothing here is required: every key has a default.
- Components take explicit values; only the CLI reads get_settings().
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .context.context_models import MY_DAY_TAG_ID

ENV_PREFIX = "WORKLENS"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    context_state_path: Path

    # ---- Work context ----
    context_change_delay_ms: int
    my_day_tag_id: str

    @property
    def context_change_delay_s(self) -> float:
        return max(0, self.context_change_delay_ms) / 1000.0

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "worklens") or "worklens"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/worklens"))
        context_state_path = _env_path(_k("CONTEXT_STATE_PATH"), data_dir / "context_state.json")

        context_change_delay_ms = _env_int(_k("CONTEXT_CHANGE_DELAY_MS"), 50)
        my_day_tag_id = _env(_k("MY_DAY_TAG_ID"), MY_DAY_TAG_ID).strip() or MY_DAY_TAG_ID

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            context_state_path=context_state_path,
            context_change_delay_ms=context_change_delay_ms,
            my_day_tag_id=my_day_tag_id,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
