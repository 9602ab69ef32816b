#!/usr/bin/env python3
"""
Fragment Catalog
================
Read side of the catalog:
- CatalogSource: backing store contract (SQLite, in-memory)
- CatalogReader: scoped, validated pools behind a PoolCache
- PoolCache: thread-safe read-through cache with explicit invalidation
"""

from .cache import PoolCache
from .loader import SECTIONS, build_record, build_records, load_seed, shape_problem
from .memory import InMemoryCatalog
from .reader import CatalogReader, CatalogSource

__all__ = [
    'CatalogReader',
    'CatalogSource',
    'InMemoryCatalog',
    'PoolCache',
    'SECTIONS',
    'build_record',
    'build_records',
    'load_seed',
    'shape_problem',
]
