"""Loading and saving :class:`ManagerSettings`.

Settings files may be YAML or JSON; the format is chosen by file suffix
(``.json`` is JSON, anything else YAML).  Keys missing from a file fall
back to their defaults.

Functions
---------
- load_settings   — read settings from a file (defaults when absent)
- parse_settings  — validate a raw mapping
- dump_settings   — render settings as YAML or JSON text
- save_settings   — write settings to a file
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import ValidationError

from chat_lineage.records.models import ManagerSettings

DEFAULT_SETTINGS = ManagerSettings()


class SettingsError(ValueError):
    """Raised when a settings document cannot be parsed or validated."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        super().__init__(f"Invalid settings in {source}: {reason}")


def parse_settings(data: object, source: str = "<mapping>") -> ManagerSettings:
    """Validate *data* into :class:`ManagerSettings`.

    ``None`` yields the defaults.

    Raises
    ------
    SettingsError
        If *data* is not a mapping or fails validation.
    """
    if data is None:
        return ManagerSettings()
    if not isinstance(data, dict):
        raise SettingsError(source, f"expected a mapping, got {type(data).__name__}")
    try:
        return ManagerSettings.model_validate(data)
    except ValidationError as exc:
        raise SettingsError(source, str(exc)) from exc


def load_settings(path: str | Path | None) -> ManagerSettings:
    """Read settings from *path*.

    Returns the defaults when *path* is None or does not exist.

    Raises
    ------
    SettingsError
        If the file is not valid YAML/JSON or fails validation.
    """
    if path is None:
        return ManagerSettings()
    file_path = Path(path)
    if not file_path.exists():
        return ManagerSettings()

    raw = file_path.read_text(encoding="utf-8")
    try:
        data: Any = json.loads(raw) if file_path.suffix == ".json" else yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SettingsError(str(file_path), str(exc)) from exc
    return parse_settings(data, str(file_path))


def dump_settings(settings: ManagerSettings, format: Literal["yaml", "json"] = "yaml") -> str:
    """Render *settings* as YAML (default) or JSON text."""
    data = settings.model_dump(mode="json")
    if format == "json":
        return json.dumps(data, indent=2)
    return yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=True)


def save_settings(settings: ManagerSettings, path: str | Path) -> None:
    """Write *settings* to *path*, choosing the format from its suffix."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    fmt: Literal["yaml", "json"] = "json" if file_path.suffix == ".json" else "yaml"
    file_path.write_text(dump_settings(settings, fmt), encoding="utf-8")


__all__ = [
    "DEFAULT_SETTINGS",
    "SettingsError",
    "dump_settings",
    "load_settings",
    "parse_settings",
    "save_settings",
]
