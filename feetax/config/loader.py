from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.analytics import BucketingMode
from ..models.app_state import AppSettings

"""Config loader.

Responsibilities:
- Load YAML config (default config/feetax.yml)
- Validate against the bundled JSON schema (settings_schema.json)
- Apply defaults for every optional key
- Validate partial settings updates with the same schema fragment
"""

SCHEMA_PATH = Path(__file__).parent / "settings_schema.json"
DEFAULT_CONFIG_PATH = Path("config/feetax.yml")
DEFAULT_STORAGE_PATH = "feetax-storage.json"
DEFAULT_NAMESPACE = "student-tax-storage"
DEFAULT_ERROR_LOG_DIR = "logs"


class ConfigError(Exception):
    pass


class SettingsError(ConfigError):
    """Raised for unknown or ill-typed settings in an update."""


@dataclass(frozen=True)
class FeetaxConfig:
    storage_path: str = DEFAULT_STORAGE_PATH
    namespace: str = DEFAULT_NAMESPACE
    error_log_dir: str = DEFAULT_ERROR_LOG_DIR
    time_bucketing: BucketingMode = BucketingMode.PROPORTIONAL
    sheet: str | None = None  # None -> first sheet of the workbook
    settings: AppSettings = field(default_factory=AppSettings)


def _load_schema() -> dict[str, Any]:
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or unreadable, or the data
            fails validation (unknown keys, wrong types, bad enum values).
    """
    schema = _load_schema()
    try:
        jsonschema.validate(data, schema)
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def validate_settings_update(partial: dict[str, Any]) -> None:
    """Check a partial settings mapping before it is merged.

    Raises:
        SettingsError: naming the offending key or value
    """
    schema = _load_schema()
    settings_schema = dict(schema["definitions"]["settings"])
    try:
        jsonschema.validate(partial, settings_schema)
    except ValidationError as e:
        raise SettingsError(f"invalid settings: {e.message}") from e


def load_config(path: Path) -> FeetaxConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    return FeetaxConfig(
        storage_path=data.get("storage_path", DEFAULT_STORAGE_PATH),
        namespace=data.get("namespace", DEFAULT_NAMESPACE),
        error_log_dir=data.get("error_log_dir", DEFAULT_ERROR_LOG_DIR),
        time_bucketing=BucketingMode(data.get("time_bucketing", BucketingMode.PROPORTIONAL.value)),
        sheet=data.get("sheet"),
        settings=AppSettings.from_dict(data.get("settings") or {}),
    )
