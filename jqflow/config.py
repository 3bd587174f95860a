"""Render options, optionally read from a YAML file."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

DEFAULT_CONFIG_NAME = ".jqflow.yaml"

# ── Key synonyms ─────────────────────────────────────────────────────
# Normalized before validation so every common spelling is accepted.
KEY_SYNONYMS: dict[str, str] = {
    "engine":        "layout",
    "layout_engine": "layout",
    "layout-engine": "layout",
    "padding":       "pad",
    "d2":            "d2_binary",
    "binary":        "d2_binary",
}


@dataclass(frozen=True)
class RenderOptions:
    layout: str = "dagre"
    theme: int = 0
    pad: int = 100
    d2_binary: str = "d2"

    def merged(self, **overrides: Any) -> RenderOptions:
        """Copy with every non-None override applied (CLI flags win over the file)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def options_from_dict(data: dict) -> RenderOptions:
    """Validate a config mapping and build ``RenderOptions`` from it."""
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a YAML mapping")

    data = dict(data)
    for old_key, new_key in KEY_SYNONYMS.items():
        if old_key in data:
            data.setdefault(new_key, data.pop(old_key))

    known = {f.name for f in fields(RenderOptions)}
    unknown = sorted(str(k) for k in data if k not in known)
    if unknown:
        raise ConfigError(f"Unknown config key(s): {', '.join(unknown)}")

    for key in ("layout", "d2_binary"):
        if key in data and (not isinstance(data[key], str) or not data[key].strip()):
            raise ConfigError(f"'{key}' must be a non-empty string")
    for key in ("theme", "pad"):
        if key in data:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"'{key}' must be a non-negative integer")

    return RenderOptions(**data)


def parse_config(source: str) -> RenderOptions:
    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML: {exc}") from exc
    if data is None:
        return RenderOptions()
    return options_from_dict(data)


def load_options(path: str | Path | None = None, cwd: str | Path | None = None) -> RenderOptions:
    """Load options from ``path``, else ``.jqflow.yaml`` in ``cwd``, else defaults.

    An explicitly given path must exist.
    """
    if path is not None:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = Path(cwd or Path.cwd()) / DEFAULT_CONFIG_NAME
        if not config_path.is_file():
            return RenderOptions()
    return parse_config(config_path.read_text(encoding="utf-8"))
