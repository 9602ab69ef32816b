#!/usr/bin/env python3
"""
Result Validator
================
Final gate before a composed entity is returned.

Re-checks that every populated field traces back to a fragment compatible
with the entity's pinned culture/category and genre (unless the stage
recorded a relaxation), that caller pins were never relaxed or replaced,
and that the biography honors its fragment's scope and name bounds.
"""

from typing import FrozenSet, Iterator, Optional, Tuple

from nomina.errors import InconsistentComposition
from nomina.models import EntityKind, GeneratedEntity, normalize_genre
from nomina.composition.request import GenerationRequest

# Stage that produced the mandatory source field for each kind
SOURCE_STAGES = {
    EntityKind.CHARACTER: 'prenom',
    EntityKind.PLACE: 'lieu',
    EntityKind.CREATURE: 'creature',
}


def _components(entity: GeneratedEntity) -> Iterator[Tuple[str, object]]:
    yield SOURCE_STAGES[entity.kind], entity.source
    if entity.nom_famille is not None:
        yield 'nom_famille', entity.nom_famille
    if entity.titre is not None:
        yield 'titre', entity.titre
    for creature in entity.companions:
        yield 'creatures', creature
    if entity.fragment_histoire is not None:
        yield 'biographie', entity.fragment_histoire


class ResultValidator:
    """Accepts or rejects a composed entity."""

    def validate(self, entity: GeneratedEntity, request: GenerationRequest,
                 univers_categories: Optional[FrozenSet[int]] = None) -> GeneratedEntity:
        """
        Return entity unchanged if consistent.

        Raises:
            InconsistentComposition: naming the stage that diverged
        """
        if entity.source is None or not (entity.name or '').strip():
            raise InconsistentComposition(SOURCE_STAGES[entity.kind], "mandatory field is empty")

        self._check_pins(entity, request, univers_categories)
        for stage, fragment in _components(entity):
            self._check_fragment(entity, stage, fragment, univers_categories)
        self._check_biography(entity)
        return entity

    def _check_pins(self, entity, request, univers_categories):
        locked = []
        if request.culture_id is not None:
            locked.append('culture')
            if entity.culture_id != request.culture_id:
                raise InconsistentComposition(
                    'validate', f"culture pin {request.culture_id} replaced by {entity.culture_id}")
        if request.categorie_id is not None:
            locked.append('categorie')
            if entity.categorie_id != request.categorie_id:
                raise InconsistentComposition(
                    'validate', f"categorie pin {request.categorie_id} replaced by {entity.categorie_id}")
        if request.univers_id is not None:
            locked.append('categorie')
            if entity.categorie_id is not None and entity.categorie_id not in (univers_categories or frozenset()):
                raise InconsistentComposition(
                    'validate', f"categorie {entity.categorie_id} outside univers {request.univers_id}")

        for stage, relaxed in entity.relaxations.items():
            for step in relaxed:
                if step in locked:
                    raise InconsistentComposition(stage, f"caller-pinned {step} was relaxed")

    def _check_fragment(self, entity, stage, fragment, univers_categories):
        relaxed = entity.relaxations.get(stage, ())

        if 'culture' not in relaxed and entity.culture_id is not None:
            ref = getattr(fragment, 'culture_id', None)
            if ref is not None and ref != entity.culture_id:
                raise InconsistentComposition(
                    stage, f"fragment {fragment.id} culture {ref} diverges from pin {entity.culture_id}")

        if 'categorie' not in relaxed:
            ref = getattr(fragment, 'categorie_id', None)
            if ref is not None and entity.categorie_id is not None and ref != entity.categorie_id:
                raise InconsistentComposition(
                    stage, f"fragment {fragment.id} categorie {ref} diverges from pin {entity.categorie_id}")
            if ref is not None and univers_categories is not None and ref not in univers_categories:
                raise InconsistentComposition(
                    stage, f"fragment {fragment.id} categorie {ref} outside the requested univers")

        if 'genre' not in relaxed and entity.genre is not None:
            tag = normalize_genre(getattr(fragment, 'genre', None))
            if tag is not None and tag != entity.genre:
                raise InconsistentComposition(
                    stage, f"fragment {fragment.id} genre '{tag}' diverges from '{entity.genre}'")

    def _check_biography(self, entity):
        fragment = entity.fragment_histoire
        if fragment is None:
            if entity.biographie is not None:
                raise InconsistentComposition('biographie', "biography without a source fragment")
            return
        if entity.biographie is None:
            raise InconsistentComposition('biographie', f"fragment {fragment.id} chosen but not rendered")
        if fragment.applies_to != entity.kind:
            raise InconsistentComposition(
                'biographie', f"fragment {fragment.id} applies to {fragment.applies_to}, not {entity.kind.value}")
        if not fragment.accepts_length(len(entity.full_name)):
            raise InconsistentComposition(
                'biographie', f"name length {len(entity.full_name)} outside fragment {fragment.id} bounds")
