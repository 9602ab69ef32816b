#!/usr/bin/env python3
"""
Composition Assembler
=====================
Runs the generation pipeline for one request:

    character: scope -> prenom -> nom_famille -> titre -> creatures -> biographie -> validate
    place:     scope -> lieu -> biographie -> validate
    creature:  scope -> creature -> biographie -> validate

The first fragment (prenom, lieu or creature) is mandatory and fixes the
entity's culture/category when the caller did not pin them. Every later
stage is filtered against those pins. Optional stages that cannot be
satisfied, even after relaxation, leave their field absent.

Usage:
    assembler = CompositionAssembler(reader)
    entity = assembler.generate('character', culture_id=1, genre='f')
    print(entity.display_name, entity.seed)
"""

import logging
from typing import Dict, FrozenSet, List, Optional, Sequence, Set

from nomina.catalog.reader import CatalogReader
from nomina.composition import sampler
from nomina.composition.biography import BiographyRenderer
from nomina.composition.filters import Constraints
from nomina.composition.relaxation import narrow
from nomina.composition.request import CancelToken, GenerationRequest
from nomina.composition.validator import SOURCE_STAGES, ResultValidator
from nomina.errors import CompositionFailed, NoCandidates
from nomina.models import (
    EntityKind,
    FragmentKind,
    GeneratedEntity,
    compose_full_name,
    normalize_genre,
    normalize_name,
)
from nomina.settings import get_setting

logger = logging.getLogger(__name__)

STAGES = {
    EntityKind.CHARACTER: ('scope', 'prenom', 'nom_famille', 'titre', 'creatures', 'biographie', 'validate'),
    EntityKind.PLACE: ('scope', 'lieu', 'biographie', 'validate'),
    EntityKind.CREATURE: ('scope', 'creature', 'biographie', 'validate'),
}

_SOURCE_POOLS = {
    EntityKind.CHARACTER: FragmentKind.PRENOM,
    EntityKind.PLACE: FragmentKind.LIEU,
    EntityKind.CREATURE: FragmentKind.CREATURE,
}


class _BatchNames:
    """Normalised names already handed out in a batch."""

    def __init__(self):
        self.names: Set[str] = set()
        self.full_names: Set[str] = set()

    def remember(self, entity: GeneratedEntity) -> None:
        self.names.add(normalize_name(entity.name))
        self.full_names.add(normalize_name(entity.full_name))

    def fresh_sources(self, pool: Sequence) -> tuple:
        return tuple(f for f in pool if normalize_name(f.valeur) not in self.names)

    def fresh_family_names(self, name: str, pool: Sequence) -> tuple:
        return tuple(
            n for n in pool
            if normalize_name(compose_full_name(name, n.valeur)) not in self.full_names
        )


class _Pass:
    """State of one generation pass: request, resolved scope and fetched pools."""

    def __init__(self, reader: CatalogReader, kind: EntityKind, request: GenerationRequest,
                 seed: str, cancel: Optional[CancelToken], names: Optional[_BatchNames] = None):
        self.reader = reader
        self.kind = kind
        self.request = request
        self.seed = seed
        self.cancel = cancel
        self.names = names
        self.univers_categories: Optional[FrozenSet[int]] = None
        self.pools: Dict[tuple, tuple] = {}

    @property
    def locked(self) -> FrozenSet[str]:
        locked = set()
        if self.request.culture_id is not None:
            locked.add('culture')
        if self.request.categorie_id is not None or self.request.univers_id is not None:
            locked.add('categorie')
        return frozenset(locked)

    def checkpoint(self, stage: str) -> None:
        if self.cancel is not None:
            self.cancel.raise_if_cancelled(stage)

    def fetcher(self, kind: FragmentKind):
        def fetch(attempt: Constraints) -> Sequence:
            key = (kind, attempt.culture_id, attempt.categorie_id)
            if key not in self.pools:
                self.pools[key] = self.reader.fetch_pool(kind, attempt.culture_id, attempt.categorie_id)
            return self.pools[key]
        return fetch

    def stage_seed(self, stage: str) -> str:
        return sampler.derive_seed(self.seed, stage)


class CompositionAssembler:
    """
    Composes characters, places and creatures from catalog fragments.

    Thread-safe: each call keeps its own state, and the shared reader
    serialises pool loading through its cache.
    """

    def __init__(self, reader: CatalogReader, renderer: BiographyRenderer = None,
                 validator: ResultValidator = None):
        self.reader = reader
        self.renderer = renderer or BiographyRenderer()
        self.validator = validator or ResultValidator()

    # =========================================================================
    # Public API
    # =========================================================================

    def generate(self, kind, request: GenerationRequest = None,
                 cancel: CancelToken = None, **kwargs) -> GeneratedEntity:
        """
        Generate one entity.

        Args:
            kind: EntityKind or alias ('character', 'npc', 'lieu'...)
            request: Pins and options; built from kwargs when omitted
            cancel: Optional token checked between stages

        Returns:
            GeneratedEntity carrying the seed that reproduces it

        Raises:
            CompositionFailed: the mandatory field has no candidate
            InconsistentComposition: the result broke a scoping invariant
            GenerationCancelled: cancel was set before a stage started
            CatalogUnavailable: the backing store cannot be reached
        """
        kind = EntityKind.parse(kind)
        if request is None:
            request = GenerationRequest(**kwargs)
        elif kwargs:
            raise TypeError("Pass either a request or keyword options, not both")
        seed = str(request.seed) if request.seed is not None else sampler.new_seed()
        return self._run(_Pass(self.reader, kind, request, seed, cancel))

    def generate_batch(self, kind, request: GenerationRequest = None, count: int = None,
                       cancel: CancelToken = None) -> List[GeneratedEntity]:
        """
        Generate count entities sharing one request.

        Item i uses a seed derived from the batch seed, so the whole batch
        replays from request.seed. Sources whose normalised name was not yet
        handed out in the batch are preferred while any remain, and so are
        family names that do not repeat a full name.
        """
        kind = EntityKind.parse(kind)
        request = request or GenerationRequest()
        if count is None:
            count = get_setting("generation.default_batch_count", 10)
        max_count = get_setting("generation.max_batch_count", 200)
        if count < 1 or count > max_count:
            raise ValueError(f"count must be between 1 and {max_count}")

        batch_seed = str(request.seed) if request.seed is not None else sampler.new_seed()
        names = _BatchNames()
        results = []
        for i in range(count):
            state = _Pass(self.reader, kind, request, sampler.derive_seed(batch_seed, i), cancel, names)
            entity = self._run(state)
            names.remember(entity)
            results.append(entity)
        logger.debug("Batch of %d %s entities from seed %s (%d distinct names)",
                     count, kind.value, batch_seed, len(names.full_names))
        return results

    # =========================================================================
    # Pipeline
    # =========================================================================

    def _run(self, state: _Pass) -> GeneratedEntity:
        kind = state.kind
        state.checkpoint('scope')
        self._resolve_scope(state)

        entity = self._compose_source(state)

        if kind is EntityKind.CHARACTER:
            state.checkpoint('nom_famille')
            self._compose_nom_famille(state, entity)
            state.checkpoint('titre')
            self._compose_titre(state, entity)
            state.checkpoint('creatures')
            self._compose_companions(state, entity)

        state.checkpoint('biographie')
        self._compose_biographie(state, entity)

        state.checkpoint('validate')
        self.validator.validate(entity, state.request, state.univers_categories)
        logger.debug("Generated %s '%s' (seed %s, relaxations %s)",
                     kind.value, entity.display_name, entity.seed, entity.relaxations or '-')
        return entity

    def _resolve_scope(self, state: _Pass) -> None:
        request = state.request
        mandatory = SOURCE_STAGES[state.kind]
        if request.culture_id is not None and self.reader.culture(request.culture_id) is None:
            raise CompositionFailed(mandatory, f"Unknown culture {request.culture_id}")
        if request.categorie_id is not None and self.reader.categorie(request.categorie_id) is None:
            raise CompositionFailed(mandatory, f"Unknown categorie {request.categorie_id}")
        if request.univers_id is None:
            return
        if not any(u.id == request.univers_id for u in self.reader.univers()):
            raise CompositionFailed(mandatory, f"Unknown univers {request.univers_id}")
        state.univers_categories = self.reader.categories_in_univers(request.univers_id)
        if request.categorie_id is not None and request.categorie_id not in state.univers_categories:
            raise CompositionFailed(
                mandatory, f"Categorie {request.categorie_id} is not part of univers {request.univers_id}")

    def _scoped(self, state: _Pass, culture_id, categorie_id, **extra) -> Constraints:
        return Constraints(
            culture_id=culture_id,
            categorie_id=categorie_id,
            categorie_ids=state.univers_categories,
            **extra,
        )

    def _narrow(self, state: _Pass, entity: Optional[GeneratedEntity], stage: str,
                kind: FragmentKind, constraints: Constraints) -> Optional[tuple]:
        """Filter an optional stage's pool; None when the ladder is exhausted."""
        try:
            pool, relaxed = narrow(stage, constraints, state.fetcher(kind), state.locked)
        except NoCandidates:
            logger.debug("%s: left empty", stage)
            return None
        if relaxed and entity is not None:
            entity.relaxations[stage] = list(relaxed)
        return pool

    def _compose_source(self, state: _Pass) -> GeneratedEntity:
        kind = state.kind
        request = state.request
        stage = SOURCE_STAGES[kind]
        state.checkpoint(stage)

        genre = request.genre if kind is EntityKind.CHARACTER else None
        constraints = self._scoped(state, request.culture_id, request.categorie_id, genre=genre)
        try:
            pool, relaxed = narrow(stage, constraints, state.fetcher(_SOURCE_POOLS[kind]), state.locked)
        except NoCandidates as e:
            raise CompositionFailed(stage, str(e)) from e

        if state.names is not None:
            pool = state.names.fresh_sources(pool) or pool
        source = sampler.pick(pool, state.stage_seed(stage))

        if kind is EntityKind.CHARACTER:
            genre = normalize_genre(source.genre)
            if genre is None and 'genre' not in relaxed:
                genre = request.genre
        culture_id = request.culture_id
        if culture_id is None:
            culture_id = getattr(source, 'culture_id', None)
        categorie_id = request.categorie_id if request.categorie_id is not None else source.categorie_id

        entity = GeneratedEntity(
            kind=kind,
            source=source,
            name=source.valeur.strip(),
            full_name=source.valeur.strip(),
            seed=state.seed,
            genre=genre,
            culture_id=culture_id,
            categorie_id=categorie_id,
        )
        if relaxed:
            entity.relaxations[stage] = list(relaxed)
        return entity

    def _compose_nom_famille(self, state: _Pass, entity: GeneratedEntity) -> None:
        constraints = self._scoped(state, entity.culture_id, entity.categorie_id)
        pool = self._narrow(state, entity, 'nom_famille', FragmentKind.NOM_FAMILLE, constraints)
        if pool is None:
            return
        if state.names is not None:
            pool = state.names.fresh_family_names(entity.name, pool) or pool
        entity.nom_famille = sampler.pick(pool, state.stage_seed('nom_famille'))
        entity.full_name = compose_full_name(entity.name, entity.nom_famille.valeur)

    def _compose_titre(self, state: _Pass, entity: GeneratedEntity) -> None:
        constraints = self._scoped(state, entity.culture_id, entity.categorie_id, genre=entity.genre)
        pool = self._narrow(state, entity, 'titre', FragmentKind.TITRE, constraints)
        if pool is not None:
            entity.titre = sampler.pick(pool, state.stage_seed('titre'))

    def _compose_companions(self, state: _Pass, entity: GeneratedEntity) -> None:
        request = state.request
        count = request.companion_count
        if count is None:
            count = get_setting("generation.default_companion_count", 0)
        max_count = get_setting("generation.max_companion_count", 12)
        if count > max_count:
            raise ValueError(f"companion_count must be <= {max_count}")
        if count == 0:
            return
        constraints = self._scoped(state, entity.culture_id, entity.categorie_id)
        pool = self._narrow(state, entity, 'creatures', FragmentKind.CREATURE, constraints)
        if pool is None:
            return
        entity.companions = sampler.pick_many(
            pool, count, state.stage_seed('creatures'), distinct=request.distinct_companions)

    def _compose_biographie(self, state: _Pass, entity: GeneratedEntity) -> None:
        constraints = self._scoped(
            state, entity.culture_id, entity.categorie_id,
            genre=entity.genre,
            applies_to=entity.kind,
            name_length=len(entity.full_name),
        )
        pool = self._narrow(state, entity, 'biographie', FragmentKind.FRAGMENT_HISTOIRE, constraints)
        if pool is None:
            return
        fragment = sampler.pick(pool, state.stage_seed('biographie'))
        entity.fragment_histoire = fragment
        entity.biographie = self.renderer.render(fragment, entity.full_name)
