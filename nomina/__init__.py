#!/usr/bin/env python3
"""
Nomina - Constraint-Based Name Composition
==========================================

Composes characters, places and creatures from a catalog of tagged
fragments (given names, family names, titles, creatures, places, history
templates) under culture, category and genre constraints.

Quick Start
-----------
    from nomina import Nomina

    nomina = Nomina()

    # One character, reproducible through its seed
    hero = nomina.generate('character', culture_id=1, genre='f')
    print(hero.display_name, hero.biographie, hero.seed)

    # Ten places in one category
    places = nomina.generate_batch('place', count=10, categorie_id=2)

Modules
-------
    nomina.catalog     - Catalog reader, pool cache, YAML seed loader
    nomina.composition - Filter, sampler, assembler, biography, validator
    nomina.db          - SQLite catalog store
    nomina.config      - Environment configuration

CLI Usage
---------
    python -m nomina seed
    python -m nomina generate character --culture 1 --bio
    python -m nomina stats
"""

__version__ = "0.4.0"
__author__ = "Nomina"

import sys
from pathlib import Path

# Ensure parent directory is in path for imports
_parent = Path(__file__).parent.parent
if str(_parent) not in sys.path:
    sys.path.insert(0, str(_parent))

# =============================================================================
# Imports
# =============================================================================

from .errors import (
    NominaError,
    CatalogUnavailable,
    EmptyPool,
    NoCandidates,
    CompositionFailed,
    InconsistentComposition,
    GenerationCancelled,
)

from .models import (
    EntityKind,
    FragmentKind,
    GeneratedEntity,
)

from .catalog import (
    CatalogReader,
    CatalogSource,
    InMemoryCatalog,
    PoolCache,
)

from .composition import (
    CancelToken,
    CompositionAssembler,
    GenerationRequest,
)

from .concepts import ConceptIdea, ConceptSample, sample_concepts
from .config import Config, get_config


# =============================================================================
# Facade
# =============================================================================

class Nomina:
    """
    Unified interface over a catalog and the composition pipeline.

    Parameters
    ----------
    source : CatalogSource, optional
        Catalog to read from. Defaults to the SQLite store at
        NOMINA_DB_PATH (or catalog.db_path in app.yaml).
    """

    def __init__(self, source: CatalogSource = None):
        if source is None:
            from .db import get_catalogdb
            source = get_catalogdb()
        self._source = source
        self._reader = CatalogReader(source)
        self._assembler = CompositionAssembler(self._reader)

    @property
    def reader(self) -> CatalogReader:
        """Access the cached catalog reader."""
        return self._reader

    def generate(self, kind: str = 'character', cancel: CancelToken = None, **kwargs) -> GeneratedEntity:
        """
        Generate one entity.

        Parameters
        ----------
        kind : str
            'character' (or 'npc'), 'place' or 'creature'
        cancel : CancelToken, optional
            Checked between pipeline stages
        **kwargs
            GenerationRequest fields: culture_id, categorie_id, univers_id,
            genre, seed, companion_count, distinct_companions

        Returns
        -------
        GeneratedEntity
        """
        return self._assembler.generate(kind, GenerationRequest(**kwargs), cancel)

    def generate_batch(self, kind: str = 'character', count: int = None,
                       parallel: bool = False, **kwargs) -> list:
        """
        Generate several entities from one request.

        With parallel=True the batch runs on a thread pool sized by
        parallel.workers in app.yaml.
        """
        request = GenerationRequest(**kwargs)
        if parallel:
            from .parallel import ParallelGenerator
            return ParallelGenerator(self._assembler).generate_batch(kind, request, count)
        return self._assembler.generate_batch(kind, request, count)

    def concepts(self, categorie_id: int = None, count: int = 3, seed=None) -> ConceptSample:
        """Draw concepts for a category."""
        return sample_concepts(self._reader, categorie_id, count, seed)

    def cultures(self) -> tuple:
        return self._reader.cultures()

    def categories(self) -> tuple:
        return self._reader.categories()

    def invalidate(self, kind, culture_id: int = None, categorie_id: int = None):
        """Forward a catalog-change notification to the pool cache."""
        self._reader.invalidate(kind, culture_id, categorie_id)


__all__ = [
    '__version__',
    'Nomina',
    'NominaError',
    'CatalogUnavailable',
    'EmptyPool',
    'NoCandidates',
    'CompositionFailed',
    'InconsistentComposition',
    'GenerationCancelled',
    'EntityKind',
    'FragmentKind',
    'GeneratedEntity',
    'CatalogReader',
    'CatalogSource',
    'InMemoryCatalog',
    'PoolCache',
    'CancelToken',
    'CompositionAssembler',
    'GenerationRequest',
    'ConceptIdea',
    'ConceptSample',
    'sample_concepts',
    'Config',
    'get_config',
]
