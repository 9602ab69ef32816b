#!/usr/bin/env python3
"""
Relaxation Ladder
=================
Ordered constraint removals tried when a stage's pool filters down to
nothing. Each step drops one more constraint (cumulative) and the stage
retries once:

    genre -> categorie -> culture

Steps only apply to constraints present on the stage, and never to
constraints the caller pinned (locked). applies_to and name_length are
not on the ladder: they are never relaxed.
"""

import logging
from typing import Callable, FrozenSet, Iterator, Sequence, Tuple

from nomina.composition import filters
from nomina.composition.filters import Constraints
from nomina.errors import NoCandidates

logger = logging.getLogger(__name__)

RELAXATION_LADDER: Tuple[str, ...] = ('genre', 'categorie', 'culture')

# Constraint fields dropped by each step
STEP_FIELDS = {
    'genre': ('genre',),
    'categorie': ('categorie_id', 'categorie_ids'),
    'culture': ('culture_id',),
}


def relaxation_steps(constraints: Constraints,
                     locked: FrozenSet[str] = frozenset()) -> Iterator[Tuple[Tuple[str, ...], Constraints]]:
    """
    Yield (relaxed step names, constraints) attempts, strictest first.

    The first attempt is the unrelaxed constraints.
    """
    relaxed = []
    current = constraints
    yield (), current
    for step in RELAXATION_LADDER:
        if step in locked:
            continue
        present = [name for name in STEP_FIELDS[step] if getattr(current, name) is not None]
        if not present:
            continue
        current = current.without(*present)
        relaxed.append(step)
        yield tuple(relaxed), current


def narrow(stage: str,
           constraints: Constraints,
           fetch: Callable[[Constraints], Sequence],
           locked: FrozenSet[str] = frozenset()) -> Tuple[Tuple, Tuple[str, ...]]:
    """
    Filter a stage's pool, walking down the ladder until something matches.

    Args:
        stage: Stage name, for logs and errors
        constraints: Strictest constraints for the stage
        fetch: Returns the pool for a given attempt's scope
        locked: Ladder steps that must not be taken

    Returns:
        (filtered pool, relaxed step names)

    Raises:
        NoCandidates: if the ladder is exhausted
    """
    for relaxed, attempt in relaxation_steps(constraints, locked):
        pool = fetch(attempt)
        try:
            kept = filters.apply(pool, attempt)
        except NoCandidates:
            logger.debug("%s: no candidate for %s", stage, attempt)
            continue
        if relaxed:
            logger.debug("%s: matched after relaxing %s", stage, ', '.join(relaxed))
        return kept, relaxed
    raise NoCandidates(f"No candidate for '{stage}' after relaxation", stage)
