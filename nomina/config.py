#!/usr/bin/env python3
"""
Configuration Management
========================
Loads environment overrides from a .env file.

app.yaml holds the defaults; the environment only overrides where the
catalog lives:

    NOMINA_DB_PATH    SQLite catalog file
    NOMINA_SEED_FILE  YAML seed imported by `nomina seed`
    NOMINA_LOG_LEVEL  Root log level for the CLI
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from nomina.settings import get_setting, resolve_path


@dataclass
class Config:
    """Application configuration"""
    db_path: Optional[Path] = None
    seed_file: Optional[Path] = None
    log_level: Optional[str] = None

    def __post_init__(self):
        if self.db_path is None:
            self.db_path = resolve_path(get_setting("catalog.db_path", "data/nomina.db"))
        if self.seed_file is None:
            self.seed_file = resolve_path(get_setting("catalog.seed_file", "nomina/catalog/data/seed.yaml"))
        if self.log_level is None:
            self.log_level = get_setting("logging.level", "WARNING")
        self.log_level = str(self.log_level).upper()


def load_env(env_path: Path = None) -> dict:
    """Load environment variables from .env file."""
    if env_path is None:
        # Look for .env in package parent directory
        env_path = Path(__file__).parent.parent / '.env'

    env_vars = {}
    if env_path.exists():
        for line in env_path.read_text().splitlines():
            line = line.strip()
            if '=' in line and not line.startswith('#'):
                key, value = line.split('=', 1)
                env_vars[key.strip()] = value.strip()
                os.environ.setdefault(key.strip(), value.strip())

    return env_vars


def get_config(env_path: Path = None) -> Config:
    """Get configuration from environment."""
    env = load_env(env_path)

    def lookup(key):
        return env.get(key) or os.environ.get(key)

    db_path = lookup('NOMINA_DB_PATH')
    seed_file = lookup('NOMINA_SEED_FILE')
    return Config(
        db_path=resolve_path(db_path) if db_path else None,
        seed_file=resolve_path(seed_file) if seed_file else None,
        log_level=lookup('NOMINA_LOG_LEVEL'),
    )


# Singleton config
_config = None

def config() -> Config:
    """Get the singleton config instance."""
    global _config
    if _config is None:
        _config = get_config()
    return _config
