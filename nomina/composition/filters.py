#!/usr/bin/env python3
"""
Constraint Filter
=================
Narrows a fragment pool to the fragments compatible with a request.

All present constraints are AND-ed:
- culture_id / categorie_id: equal, or unset on the fragment (wildcard)
- categorie_ids: fragment category in the set, or unset (universe scope)
- genre: equal after normalisation, or unset on the fragment
- applies_to: exact match, no wildcard
- name_length: within [min_name_length or 0, max_name_length or +inf]

Filtering keeps pool order and never widens: an empty result raises
NoCandidates.
"""

from dataclasses import dataclass, fields, replace
from typing import Callable, Dict, FrozenSet, Optional, Sequence, Tuple

from nomina.errors import NoCandidates
from nomina.models import EntityKind, normalize_genre


@dataclass(frozen=True)
class Constraints:
    """Compatibility requirements for one pick."""
    culture_id: Optional[int] = None
    categorie_id: Optional[int] = None
    categorie_ids: Optional[FrozenSet[int]] = None
    genre: Optional[str] = None
    applies_to: Optional[EntityKind] = None
    name_length: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, 'genre', normalize_genre(self.genre))
        if self.categorie_ids is not None:
            object.__setattr__(self, 'categorie_ids', frozenset(self.categorie_ids))
        if self.applies_to is not None:
            object.__setattr__(self, 'applies_to', EntityKind.parse(self.applies_to))

    def present(self) -> Tuple[str, ...]:
        """Names of the constraints that are set."""
        return tuple(f.name for f in fields(self) if getattr(self, f.name) is not None)

    def without(self, *names: str) -> "Constraints":
        """Copy with the named constraints removed."""
        return replace(self, **{name: None for name in names})


# =============================================================================
# Individual checks
# =============================================================================

def _check_culture(fragment, c: Constraints) -> bool:
    ref = getattr(fragment, 'culture_id', None)
    return ref is None or ref == c.culture_id


def _check_categorie(fragment, c: Constraints) -> bool:
    ref = getattr(fragment, 'categorie_id', None)
    return ref is None or ref == c.categorie_id


def _check_categorie_ids(fragment, c: Constraints) -> bool:
    ref = getattr(fragment, 'categorie_id', None)
    return ref is None or ref in c.categorie_ids


def _check_genre(fragment, c: Constraints) -> bool:
    tag = normalize_genre(getattr(fragment, 'genre', None))
    return tag is None or tag == c.genre


def _check_applies_to(fragment, c: Constraints) -> bool:
    return getattr(fragment, 'applies_to', None) == c.applies_to


def _check_name_length(fragment, c: Constraints) -> bool:
    low = getattr(fragment, 'min_name_length', None)
    high = getattr(fragment, 'max_name_length', None)
    if c.name_length < (low if low is not None else 0):
        return False
    return high is None or c.name_length <= high


CHECKS: Dict[str, Callable] = {
    'culture_id': _check_culture,
    'categorie_id': _check_categorie,
    'categorie_ids': _check_categorie_ids,
    'genre': _check_genre,
    'applies_to': _check_applies_to,
    'name_length': _check_name_length,
}


def satisfies(fragment, constraints: Constraints, name: str) -> bool:
    """Check a fragment against one named constraint (True when it is unset)."""
    if getattr(constraints, name) is None:
        return True
    return CHECKS[name](fragment, constraints)


def matches(fragment, constraints: Constraints) -> bool:
    """Check a fragment against every present constraint."""
    return all(CHECKS[name](fragment, constraints) for name in constraints.present())


def apply(pool: Sequence, constraints: Constraints) -> Tuple:
    """
    Narrow a pool to the fragments matching every present constraint.

    Raises:
        NoCandidates: if no fragment survives
    """
    active = [CHECKS[name] for name in constraints.present()]
    kept = tuple(f for f in pool if all(check(f, constraints) for check in active))
    if not kept:
        raise NoCandidates(f"No fragment matches {constraints}")
    return kept
