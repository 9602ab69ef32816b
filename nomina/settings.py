#!/usr/bin/env python3
"""
Settings
========
Application defaults from nomina/configs/app.yaml.

The file is read once per process. Values are looked up by dotted path:

    get_setting("biography.max_chars", 420)

Paths in the file are relative to the project root (the directory holding
the nomina package) unless absolute or ~-prefixed.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent
APP_CONFIG_PATH = PACKAGE_DIR / "configs" / "app.yaml"


@lru_cache(maxsize=1)
def load_app_config() -> dict:
    if not APP_CONFIG_PATH.exists():
        raise FileNotFoundError(f"Missing app config: {APP_CONFIG_PATH}")
    data = yaml.safe_load(APP_CONFIG_PATH.read_text(encoding="utf-8"))
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"{APP_CONFIG_PATH} must hold a mapping of sections")
    return data or {}


def get_setting(path: str, default: Any = None) -> Any:
    """Value at a dotted path, or default when any part is missing."""
    current: Any = load_app_config()
    for part in path.split('.'):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def resolve_path(value: str, base: Path | None = None) -> Path:
    """Resolve a configured path against the project root."""
    if value is None:
        raise ValueError("path value is required")
    path = Path(os.path.expanduser(str(value)))
    if not path.is_absolute():
        path = ((base or PROJECT_ROOT) / path).resolve()
    return path


__all__ = [
    "load_app_config",
    "get_setting",
    "resolve_path",
    "PROJECT_ROOT",
    "APP_CONFIG_PATH",
]
