"""Read and write pipeline configs as JSON or YAML."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

import yaml

from signal_flow.models import Config

ConfigFormat = Literal["json", "yaml"]

_YAML_SUFFIXES = (".yml", ".yaml")


def format_for_path(path: str | Path) -> ConfigFormat:
    return "yaml" if Path(path).suffix.lower() in _YAML_SUFFIXES else "json"


def clean_null_values(value: Any) -> Any:
    """Recursively drop ``None`` values from mappings (list items are kept)."""
    if isinstance(value, dict):
        return {k: clean_null_values(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [clean_null_values(v) for v in value]
    return value


def config_to_dict(config: Config) -> dict[str, Any]:
    """Plain-data form of *config*, using wire field names and omitting unset values."""
    data = config.model_dump(mode="json", by_alias=True, exclude_none=True)
    return clean_null_values(data)


def parse_config(text: str, fmt: ConfigFormat = "json") -> Config:
    """Parse config text.

    Raises ``json.JSONDecodeError`` / ``yaml.YAMLError`` for malformed text,
    ``ValueError`` when the document is not a mapping, and
    ``pydantic.ValidationError`` when it does not match the config schema.
    """
    data = yaml.safe_load(text) if fmt == "yaml" else json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("config document must be a mapping")
    return Config.model_validate(data)


def load_config(path: str | Path) -> Config:
    """Load a config file; ``.yml``/``.yaml`` files are read as YAML, others as JSON."""
    text = Path(path).read_text()
    return parse_config(text, format_for_path(path))


def dump_config(config: Config, fmt: ConfigFormat = "json") -> str:
    data = config_to_dict(config)
    if fmt == "yaml":
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    return json.dumps(data, indent=2) + "\n"


def save_config(config: Config, path: str | Path) -> None:
    Path(path).write_text(dump_config(config, format_for_path(path)))
