"""Configuration resolution: caller overrides overlaid on defaults."""

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from .exceptions import ConfigurationError
from .models import IngestConfig

DEFAULT_CONFIG = IngestConfig()

# camelCase spellings accepted alongside the field names.
KEY_ALIASES = {
    "dirFormat": "dir_format",
    "fileNameLen": "file_name_len",
    "maxFileSize": "max_file_size",
    "withoutEnlargement": "without_enlargement",
    "ignoreAspectRatio": "ignore_aspect_ratio",
}


def _canonical_keys(values: Mapping[str, Any]) -> Dict[str, Any]:
    return {KEY_ALIASES.get(key, key): value for key, value in values.items()}


def resolve_config(
    defaults: Union[IngestConfig, Mapping[str, Any]] = DEFAULT_CONFIG,
    overrides: Optional[Mapping[str, Any]] = None,
) -> IngestConfig:
    """
    Overlay ``overrides`` onto ``defaults`` one top-level key at a time.

    A key present in ``overrides`` replaces the default value wholesale;
    nested values such as ``sizes`` or ``background`` are not merged. Keys
    that are not configuration fields are ignored.

    Only the shape of each value is checked. Values of the right type that
    no transform recognizes (a 45 degree rotation, an unknown crop gravity)
    are accepted and later skipped.

    Raises:
        ConfigurationError: If a value has the wrong type
    """
    if isinstance(defaults, IngestConfig):
        merged = defaults.model_dump()
    else:
        merged = _canonical_keys(defaults)
    merged.update(_canonical_keys(overrides or {}))

    try:
        return IngestConfig.model_validate(merged)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"][:1]) or None
        raise ConfigurationError(
            f"Invalid configuration: {exc.error_count()} error(s), first: {first['msg']}",
            field=field,
        ) from exc


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a JSON object of configuration overrides."""
    try:
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return data
