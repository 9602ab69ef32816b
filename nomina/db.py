#!/usr/bin/env python3
"""
Database Module
===============
Re-exports the SQLite catalog store.
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
_parent = Path(__file__).parent.parent
if str(_parent) not in sys.path:
    sys.path.insert(0, str(_parent))

from catalogdb import (
    CatalogDB,
    get_catalogdb,
)

# Aliases for convenience
SQLiteCatalog = CatalogDB
get_db = get_catalogdb

__all__ = [
    'CatalogDB',
    'SQLiteCatalog',
    'get_catalogdb',
    'get_db',
]
