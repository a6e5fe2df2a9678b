"""Resolver configuration loaded from ``sheetlink.yaml``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from sheetlink.source import DEFAULT_BASE_URL, DEFAULT_BRANCH, DEFAULT_REPO_ID

CONFIG_FILENAME = "sheetlink.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "repo_id": DEFAULT_REPO_ID,
    "branch": DEFAULT_BRANCH,
    "ttl": 600,  # seconds; 0 = never expire
    "base_url": DEFAULT_BASE_URL,
    "timeout": 30.0,
    "token_env": "SHEETLINK_TOKEN",
    "linkable_types": None,  # None = any non-scalar type links to a sheet
    "log_dir": None,
}

SAMPLE_CONFIG = """\
# sheetlink configuration
repo_id: xivapi/ffxiv-datamining
branch: master
ttl: 600

# Only these column types are followed as links to other sheets.
# Leave unset to follow every type that is not a scalar such as int32 or str.
# linkable_types: [Item, ItemUICategory, ClassJob]

# log_dir: .sheetlink/logs
"""


def _flatten_source_block(user_config: dict[str, Any]) -> dict[str, Any]:
    """Flatten a nested ``source:`` block into flat config keys.

    Supports::

        source:
          repo: xivapi/ffxiv-datamining
          branch: master
          base_url: https://raw.githubusercontent.com
    """
    src = user_config.pop("source", None)
    if not isinstance(src, dict):
        return user_config

    mapping = {
        "repo": "repo_id",
        "repo_id": "repo_id",
        "branch": "branch",
        "base_url": "base_url",
        "timeout": "timeout",
        "token_env": "token_env",
    }
    for short_key, flat_key in mapping.items():
        if short_key in src:
            user_config.setdefault(flat_key, src[short_key])
    return user_config


def _seconds(config: dict[str, Any], key: str, config_path: Path, *, allow_zero: bool) -> None:
    """Coerce ``config[key]`` to float seconds in place."""
    value = config[key]
    number = None
    if not isinstance(value, bool):
        try:
            number = float(value)
        except (TypeError, ValueError):
            pass
    if number is None or number != number or number < 0 or (number == 0 and not allow_zero):
        bound = ">= 0" if allow_zero else "> 0"
        raise ValueError(f"{config_path}: {key} must be a number {bound}, got {value!r}")
    config[key] = number


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration with defaults.

    Args:
        path: A config file, or a directory containing ``sheetlink.yaml``.
            ``None`` looks in the current directory.

    Returns:
        Merged configuration dict.

    Raises:
        ValueError: If the file does not hold a YAML mapping, or ``ttl``
            or ``timeout`` is not a usable number of seconds.
    """
    config = dict(DEFAULT_CONFIG)
    if path is None:
        path = Path.cwd()
    config_path = path / CONFIG_FILENAME if path.is_dir() else path
    if config_path.exists():
        user_config = yaml.safe_load(config_path.read_text()) or {}
        if not isinstance(user_config, dict):
            raise ValueError(f"{config_path} must contain a mapping")
        config.update(_flatten_source_block(user_config))
        _seconds(config, "ttl", config_path, allow_zero=True)
        _seconds(config, "timeout", config_path, allow_zero=False)

    linkable = config.get("linkable_types")
    if isinstance(linkable, str):
        config["linkable_types"] = [t.strip() for t in linkable.split(",") if t.strip()]
    return config
