"""Load/save treeseek settings as JSON."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from treeseek.config.models import AppSettings
from treeseek.paths import settings_path
from treeseek.runtime_logging import get_runtime_logger


def default_settings_path() -> Path:
    override = os.getenv("TREESEEK_CONFIG")
    if override:
        return Path(override).expanduser()
    return settings_path()


class SettingsStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = path or default_settings_path()

    def load(self) -> AppSettings:
        if not self.path.exists():
            settings = AppSettings()
            self.save(settings)
            return settings

        raw = self.path.read_text(encoding="utf-8")
        try:
            return AppSettings.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            backup = self.path.with_suffix(".corrupt.json")
            backup.write_text(raw, encoding="utf-8")
            get_runtime_logger().warning(
                "settings.corrupt",
                path=str(self.path),
                backup=str(backup),
                error=str(exc),
            )
            settings = AppSettings()
            self.save(settings)
            return settings

    def save(self, settings: AppSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(settings.model_dump(mode="json"), indent=2, sort_keys=True)
        self.path.write_text(f"{payload}\n", encoding="utf-8")

    def update(self, dotted_key: str, value: Any) -> AppSettings:
        """Set one field, e.g. ``update("search.workers", 4)``, and persist it."""
        section, _, field_name = dotted_key.partition(".")
        settings = self.load()

        target = getattr(settings, section, None)
        if not isinstance(target, BaseModel) or field_name not in type(target).model_fields:
            raise KeyError(f"Unknown setting path: {dotted_key}")

        data = settings.model_dump()
        data[section][field_name] = value
        updated = AppSettings.model_validate(data)
        self.save(updated)
        return updated
