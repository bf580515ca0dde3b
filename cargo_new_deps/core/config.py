from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


DEFAULT_CONFIG: dict[str, str] = {
    # A new version of a known package counts as an addition.
    "version_bumps": "report",
    "format": "text",
    "color": "auto",
}

ALLOWED_VALUES: dict[str, tuple[str, ...]] = {
    "version_bumps": ("report", "ignore"),
    "format": ("text", "json"),
    "color": ("auto", "always", "never"),
}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class NewDepsConfig:
    version_bumps: str = DEFAULT_CONFIG["version_bumps"]
    format: str = DEFAULT_CONFIG["format"]
    color: str = DEFAULT_CONFIG["color"]


def check_value(key: str, value: Any) -> str:
    allowed = ALLOWED_VALUES[key]
    if not isinstance(value, str) or value not in allowed:
        raise ConfigError(f"unknown {key}: {value} (choose one of: {', '.join(allowed)})")
    return value


def load_config_file(path: str | Path) -> dict[str, str]:
    """Load settings overrides from a YAML file.

    Format:
      version_bumps: report|ignore
      format: text|json
      color: auto|always|never
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML: {e}") from e
    except UnicodeDecodeError as e:
        raise ConfigError(f"config file is not UTF-8: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("config file must be a mapping of setting -> value")

    out: dict[str, str] = {}
    for k, v in raw.items():
        if k not in ALLOWED_VALUES:
            raise ConfigError(f"unknown setting: {k} (choose from: {', '.join(sorted(ALLOWED_VALUES))})")
        out[k] = check_value(k, v)
    return out


def merged_config(overrides: dict[str, str] | None = None) -> NewDepsConfig:
    merged = dict(DEFAULT_CONFIG)
    if overrides:
        merged.update(overrides)
    return NewDepsConfig(**merged)


def load_and_merge(config_file: str | None) -> NewDepsConfig:
    if not config_file:
        return merged_config()
    return merged_config(load_config_file(config_file))
