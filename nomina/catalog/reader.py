#!/usr/bin/env python3
"""
Catalog Reader
==============
Read-only access to tagged fragment pools.

The reader sits between the composition engine and a CatalogSource (SQLite
store, in-memory snapshot...). It scopes pools by culture/category, drops
malformed records and serves pools through a PoolCache.

Usage:
    reader = CatalogReader(InMemoryCatalog.from_seed(path))
    prenoms = reader.fetch_pool(FragmentKind.PRENOM, culture_id=1)
"""

import logging
from abc import ABC, abstractmethod
from typing import FrozenSet, Optional, Sequence, Tuple

from nomina.catalog.cache import PoolCache
from nomina.catalog.loader import shape_problem
from nomina.errors import CatalogUnavailable
from nomina.models import Categorie, Culture, FragmentKind, UniversThematique

logger = logging.getLogger(__name__)

# Pools whose records carry no culture reference
_UNCULTURED = {FragmentKind.LIEU, FragmentKind.CONCEPT}

_ORGANISATION_KINDS = ('cultures', 'categories', 'univers')


class CatalogSource(ABC):
    """
    Backing store contract.

    fetch_pool returns the records of a kind whose culture/category is the
    requested one or unset. Implementations raise CatalogUnavailable when
    the store cannot be reached.
    """

    @abstractmethod
    def fetch_pool(self, kind: FragmentKind, culture_id: Optional[int] = None,
                   categorie_id: Optional[int] = None) -> Sequence:
        ...

    @abstractmethod
    def fetch_cultures(self) -> Sequence[Culture]:
        ...

    @abstractmethod
    def fetch_categories(self) -> Sequence[Categorie]:
        ...

    @abstractmethod
    def fetch_univers(self) -> Sequence[UniversThematique]:
        ...


class CatalogReader:
    """Scoped, validated, cached view over a CatalogSource."""

    def __init__(self, source: CatalogSource, cache: PoolCache = None):
        self.source = source
        self.cache = cache if cache is not None else PoolCache()

    # === Organisation records ===

    def _load_organisation(self, name: str, loader) -> Tuple:
        def load():
            try:
                return tuple(r for r in loader() if r.id is not None)
            except CatalogUnavailable:
                raise
            except OSError as e:
                raise CatalogUnavailable(f"Catalog store unreachable: {e}") from e
        return self.cache.get_or_load((name, None, None), load)

    def cultures(self) -> Tuple[Culture, ...]:
        return self._load_organisation('cultures', self.source.fetch_cultures)

    def categories(self) -> Tuple[Categorie, ...]:
        return self._load_organisation('categories', self.source.fetch_categories)

    def univers(self) -> Tuple[UniversThematique, ...]:
        return self._load_organisation('univers', self.source.fetch_univers)

    def culture(self, culture_id: int) -> Optional[Culture]:
        return next((c for c in self.cultures() if c.id == culture_id), None)

    def categorie(self, categorie_id: int) -> Optional[Categorie]:
        return next((c for c in self.categories() if c.id == categorie_id), None)

    def categories_in_univers(self, univers_id: int) -> FrozenSet[int]:
        """Ids of the categories grouped under a thematic universe."""
        return frozenset(c.id for c in self.categories() if c.univers_id == univers_id)

    # === Pools ===

    def fetch_pool(self, kind, culture_id: Optional[int] = None,
                   categorie_id: Optional[int] = None) -> Tuple:
        """
        Get every well-formed fragment of a kind within a scope.

        Records whose reference equals the requested id, or is unset
        (wildcard), are returned. A scope id that does not exist in the
        catalog yields an empty pool: wildcards apply to existing
        cultures/categories only.

        Raises:
            CatalogUnavailable: if the backing store cannot be reached
        """
        kind = FragmentKind(kind)
        if kind in _UNCULTURED:
            culture_id = None

        if culture_id is not None and self.culture(culture_id) is None:
            logger.debug("Unknown culture %s: empty %s pool", culture_id, kind.value)
            return ()
        if categorie_id is not None and self.categorie(categorie_id) is None:
            logger.debug("Unknown categorie %s: empty %s pool", categorie_id, kind.value)
            return ()

        return self.cache.get_or_load(
            (kind, culture_id, categorie_id),
            lambda: self._load_pool(kind, culture_id, categorie_id),
        )

    def _load_pool(self, kind: FragmentKind, culture_id: Optional[int],
                   categorie_id: Optional[int]) -> Tuple:
        culture_ids = {c.id for c in self.cultures()}
        categorie_ids = {c.id for c in self.categories()}
        try:
            rows = self.source.fetch_pool(kind, culture_id, categorie_id)
        except CatalogUnavailable:
            raise
        except OSError as e:
            raise CatalogUnavailable(f"Catalog store unreachable: {e}") from e

        pool = []
        for record in rows:
            problem = shape_problem(record, culture_ids, categorie_ids)
            if problem:
                logger.warning("Skipping malformed %s %s: %s", kind.value, getattr(record, 'id', '?'), problem)
                continue
            if culture_id is not None and getattr(record, 'culture_id', None) not in (None, culture_id):
                continue
            if categorie_id is not None and record.categorie_id not in (None, categorie_id):
                continue
            pool.append(record)

        logger.debug("Loaded %s pool (culture=%s, categorie=%s): %d records",
                     kind.value, culture_id, categorie_id, len(pool))
        return tuple(pool)

    def invalidate(self, kind, culture_id: Optional[int] = None,
                   categorie_id: Optional[int] = None) -> None:
        """
        Catalog-change notification from the catalog owner.

        Changes to cultures/categories/univers affect every scoped pool, so
        they clear the whole cache.
        """
        if kind in _ORGANISATION_KINDS:
            self.cache.clear()
            return
        self.cache.invalidate(FragmentKind(kind), culture_id, categorie_id)
