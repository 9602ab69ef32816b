#!/usr/bin/env python3
"""
Concept Sampling
================
Draws flavor concepts (moods, themes, keywords) for a category.

Concepts are not part of the name pipeline; they seed inspiration panels
next to generated entities. When a category has no concept of its own the
draw falls back to the whole catalog and says so.

Each drawn concept is expanded into a ConceptIdea: a pitch, a twist, a hook
and two open questions built from its mood and first three keywords. Missing
moods and keywords are drawn from fixed lists with the same seeded RNG, so a
seed replays the whole sample.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional

from nomina.catalog.reader import CatalogReader
from nomina.composition.sampler import Seed, new_seed
from nomina.models import Concept, FragmentKind
from nomina.settings import get_setting

logger = logging.getLogger(__name__)

# =============================================================================
# Filler words
# =============================================================================

MOODS = ["mystérieux", "épique", "sombre", "onirique", "tendu", "lumineux"]

# One list per keyword slot
KEYWORD_FILLERS = (
    ["secret", "quête", "rituel", "héritage", "frontière", "anomalie"],
    ["alliance", "trahison", "mémoire", "artefact", "serment", "mensonge"],
    ["prix", "conséquence", "danger", "révélation", "dilemme", "menace"],
)


@dataclass
class ConceptIdea:
    """A drawn concept with its generated pitch material (never stored)."""
    concept: Concept
    mood: str
    keywords: List[str]
    elevator_pitch: str
    twist: str
    hook: str
    questions: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        c = self.concept
        return {
            'id': c.id,
            'valeur': c.valeur,
            'type': c.type,
            'mood': self.mood,
            'keywords': c.keyword_list(),
            'categorie_id': c.categorie_id,
            'elevator_pitch': self.elevator_pitch,
            'twist': self.twist,
            'hook': self.hook,
            'questions': list(self.questions),
        }


@dataclass
class ConceptSample:
    """Result of a concept draw."""
    seed: str
    categorie_id: Optional[int]
    ideas: List[ConceptIdea] = field(default_factory=list)
    used_fallback: bool = False

    @property
    def items(self) -> List[Concept]:
        return [idea.concept for idea in self.ideas]

    def to_dict(self) -> dict:
        return {
            'seed': self.seed,
            'categorie_id': self.categorie_id,
            'used_fallback': self.used_fallback,
            'items': [idea.to_dict() for idea in self.ideas],
        }


def expand_concept(concept: Concept, rng: random.Random) -> ConceptIdea:
    """Build the pitch material for one concept, filling gaps from rng."""
    mood = concept.mood or rng.choice(MOODS)
    given = concept.keyword_list()
    k1, k2, k3 = [
        given[i] if i < len(given) else rng.choice(fillers)
        for i, fillers in enumerate(KEYWORD_FILLERS)
    ]
    name = concept.valeur
    return ConceptIdea(
        concept=concept,
        mood=mood,
        keywords=[k1, k2, k3],
        elevator_pitch=(
            f"« {name} » est une idée {mood} centrée sur {k1} et {k2}. "
            f"Elle sert de moteur narratif et ouvre des arcs de quête, de conflit et de révélation."
        ),
        twist=f"Twist : {k2} n'est qu'un écran, la véritable cause implique {k3}.",
        hook=(
            f"Accroche : quand {k1} refait surface, vos personnages doivent choisir "
            f"entre préserver l'ordre ou dévoiler la vérité."
        ),
        questions=[
            f"Qui contrôle « {name} » et pourquoi ?",
            f"Quel est le prix exact de {k1} dans votre univers ?",
        ],
    )


def sample_concepts(reader: CatalogReader, categorie_id: Optional[int] = None,
                    count: int = 3, seed: Seed = None) -> ConceptSample:
    """
    Sample concepts without replacement.

    Args:
        reader: Catalog reader
        categorie_id: Category to draw from; None draws from every concept
        count: Number of concepts wanted (capped at concepts.max_count)
        seed: Seed for a reproducible draw; a fresh one is generated if None

    Returns:
        ConceptSample, possibly with fewer ideas than count
    """
    max_count = get_setting("concepts.max_count", 50)
    if count < 1 or count > max_count:
        raise ValueError(f"count must be between 1 and {max_count}")
    seed = str(seed) if seed is not None else new_seed()

    pool = list(reader.fetch_pool(FragmentKind.CONCEPT, categorie_id=categorie_id))
    used_fallback = False
    if not pool and categorie_id is not None:
        logger.debug("No concept for categorie %s, falling back to all concepts", categorie_id)
        pool = list(reader.fetch_pool(FragmentKind.CONCEPT))
        used_fallback = True

    rng = random.Random(seed)
    drawn = rng.sample(pool, min(count, len(pool)))
    ideas = [expand_concept(concept, rng) for concept in drawn]
    return ConceptSample(seed=seed, categorie_id=categorie_id, ideas=ideas, used_fallback=used_fallback)
