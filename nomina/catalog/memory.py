#!/usr/bin/env python3
"""In-memory catalog snapshot, used by tests and by callers holding records already."""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from nomina.catalog.loader import load_seed
from nomina.catalog.reader import CatalogSource
from nomina.models import Categorie, Culture, FragmentKind, UniversThematique


class InMemoryCatalog(CatalogSource):
    """A CatalogSource over plain lists of records."""

    def __init__(self,
                 cultures: Iterable[Culture] = (),
                 categories: Iterable[Categorie] = (),
                 univers: Iterable[UniversThematique] = (),
                 pools: Optional[Dict[FragmentKind, Iterable]] = None):
        self._cultures = list(cultures)
        self._categories = list(categories)
        self._univers = list(univers)
        self._pools: Dict[FragmentKind, List] = {
            FragmentKind(kind): list(records) for kind, records in (pools or {}).items()
        }
        self.fetch_count = 0

    @classmethod
    def from_seed(cls, path: Path) -> "InMemoryCatalog":
        catalog = load_seed(path)
        return cls(
            cultures=catalog['cultures'],
            categories=catalog['categories'],
            univers=catalog['univers'],
            pools={kind: catalog[kind] for kind in FragmentKind},
        )

    def fetch_pool(self, kind: FragmentKind, culture_id: Optional[int] = None,
                   categorie_id: Optional[int] = None) -> Sequence:
        self.fetch_count += 1
        out = []
        for record in self._pools.get(FragmentKind(kind), []):
            if culture_id is not None and getattr(record, 'culture_id', None) not in (None, culture_id):
                continue
            if categorie_id is not None and record.categorie_id not in (None, categorie_id):
                continue
            out.append(record)
        return out

    def fetch_cultures(self) -> Sequence[Culture]:
        return list(self._cultures)

    def fetch_categories(self) -> Sequence[Categorie]:
        return list(self._categories)

    def fetch_univers(self) -> Sequence[UniversThematique]:
        return list(self._univers)
