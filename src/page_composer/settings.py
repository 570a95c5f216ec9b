from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Mapping

from pydantic import BaseModel, Field

from .history import DEFAULT_HISTORY_LIMIT


class AutosaveWindows(BaseModel):
    """Debounce windows in seconds, by weight of the edit that armed the timer."""

    edit: float = Field(default=1.0, gt=0)
    reorder: float = Field(default=0.5, gt=0)
    settings: float = Field(default=2.0, gt=0)
    bulk: float = Field(default=1.0, gt=0)
    reset: float = Field(default=0.5, gt=0)


class ComposerSettings(BaseModel):
    environment: str = "dev"
    project_id: str | None = None
    page_store: Literal["memory", "firestore"] = "memory"
    templates_dir: Path = Path("data/templates")
    history_limit: int = Field(default=DEFAULT_HISTORY_LIMIT, ge=1)
    autosave: AutosaveWindows = Field(default_factory=AutosaveWindows)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ComposerSettings":
        env = os.environ if environ is None else environ
        environment = env.get("ENVIRONMENT", "dev")
        default_store = "memory" if environment == "dev" else "firestore"
        windows = {
            name: env[key]
            for name, key in (
                ("edit", "AUTOSAVE_EDIT_SECONDS"),
                ("reorder", "AUTOSAVE_REORDER_SECONDS"),
                ("settings", "AUTOSAVE_SETTINGS_SECONDS"),
                ("bulk", "AUTOSAVE_BULK_SECONDS"),
                ("reset", "AUTOSAVE_RESET_SECONDS"),
            )
            if key in env
        }
        return cls.model_validate(
            {
                "environment": environment,
                "project_id": env.get("PROJECT_ID"),
                "page_store": env.get("PAGE_STORE", default_store),
                "templates_dir": env.get("TEMPLATES_DIR", "data/templates"),
                "history_limit": env.get("HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT),
                "autosave": windows,
            }
        )


__all__ = ["AutosaveWindows", "ComposerSettings"]
