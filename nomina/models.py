#!/usr/bin/env python3
"""
Catalog Data Model
==================
Immutable catalog records and the transient generation result.

Catalog records are loaded once per generation pass and never mutated by
the engine. Culture and category references are Optional: None means the
record applies to any culture/category (wildcard).
"""

import unicodedata
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# Enums
# =============================================================================

class EntityKind(Enum):
    """Kind of entity a generation request produces."""
    CHARACTER = "character"
    PLACE = "place"
    CREATURE = "creature"

    @classmethod
    def parse(cls, value) -> "EntityKind":
        """Resolve a kind from its value or one of the legacy aliases."""
        if isinstance(value, cls):
            return value
        if value is None:
            raise ValueError("entity kind is required")
        key = str(value).strip().lower()
        kind = _KIND_ALIASES.get(key)
        if kind is None:
            available = ', '.join(k.value for k in cls)
            raise ValueError(f"Unknown entity kind '{value}'. Available kinds: {available}")
        return kind


_KIND_ALIASES = {
    'character': EntityKind.CHARACTER,
    'npc': EntityKind.CHARACTER,
    'personnage': EntityKind.CHARACTER,
    'nompersonnage': EntityKind.CHARACTER,
    'place': EntityKind.PLACE,
    'lieu': EntityKind.PLACE,
    'lieux': EntityKind.PLACE,
    'creature': EntityKind.CREATURE,
}


class FragmentKind(Enum):
    """Kinds of catalog pools the reader can serve."""
    PRENOM = "prenom"
    NOM_FAMILLE = "nom_famille"
    TITRE = "titre"
    CREATURE = "creature"
    FRAGMENT_HISTOIRE = "fragment_histoire"
    LIEU = "lieu"
    CONCEPT = "concept"


# =============================================================================
# Normalisation helpers
# =============================================================================

_GENRE_ALIASES = {
    'm': 'm', 'masculin': 'm', 'male': 'm', 'homme': 'm',
    'f': 'f', 'féminin': 'f', 'feminin': 'f', 'female': 'f', 'femme': 'f',
    'nb': 'nb', 'non-binaire': 'nb', 'non binaire': 'nb', 'nonbinaire': 'nb',
    'neutre': 'nb', 'neutral': 'nb', 'neutre.': 'nb',
}


def normalize_genre(value: Optional[str]) -> Optional[str]:
    """
    Canonicalise a gender tag.

    The catalog may store "M", "Féminin", "non-binaire"... All aliases of
    the same gender collapse to 'm', 'f' or 'nb'. Custom tags are kept
    (stripped, lower-cased). Blank values mean "no tag".
    """
    if value is None:
        return None
    raw = str(value).strip().lower()
    if not raw:
        return None
    return _GENRE_ALIASES.get(raw, raw)


def normalize_name(value: str) -> str:
    """Lower-case, accent-free, single-spaced form used to compare names."""
    decomposed = unicodedata.normalize('NFD', (value or '').strip().lower())
    stripped = ''.join(c for c in decomposed if not unicodedata.combining(c))
    return ' '.join(stripped.split())


def compose_full_name(prenom: str, nom_famille: Optional[str]) -> str:
    """
    Join a given name and a family name.

    If the given name already contains the family name (some catalogs store
    "Aelar Sylvaran" as a single prenom), the given name is kept alone.
    """
    first = (prenom or '').strip()
    family = (nom_famille or '').strip()
    if not family:
        return first
    if normalize_name(family) in normalize_name(first):
        return first
    return f"{first} {family}".strip()


# =============================================================================
# Organisation records
# =============================================================================

@dataclass(frozen=True)
class Culture:
    """A culture owning names, titles and history fragments."""
    id: int
    name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class Categorie:
    """A setting/genre tag, optionally grouped under a thematic universe."""
    id: int
    name: str
    description: Optional[str] = None
    univers_id: Optional[int] = None


@dataclass(frozen=True)
class UniversThematique:
    """Groups several categories under one thematic label."""
    id: int
    name: str
    description: Optional[str] = None


# =============================================================================
# Fragments
# =============================================================================

@dataclass(frozen=True)
class Prenom:
    """A given name."""
    id: int
    valeur: str
    genre: Optional[str] = None
    culture_id: Optional[int] = None
    categorie_id: Optional[int] = None


@dataclass(frozen=True)
class NomFamille:
    """A family-name stub (no gender tag)."""
    id: int
    valeur: str
    culture_id: Optional[int] = None
    categorie_id: Optional[int] = None


@dataclass(frozen=True)
class Titre:
    """A title such as 'Archimage' or 'Dame'."""
    id: int
    valeur: str
    type: Optional[str] = None
    genre: Optional[str] = None
    culture_id: Optional[int] = None
    categorie_id: Optional[int] = None


@dataclass(frozen=True)
class Creature:
    """A creature, usable as a companion or generated on its own."""
    id: int
    valeur: str
    type: Optional[str] = None
    description: Optional[str] = None
    personnage_id: Optional[int] = None
    culture_id: Optional[int] = None
    categorie_id: Optional[int] = None


@dataclass(frozen=True)
class FragmentHistoire:
    """
    A biography template.

    `texte` holds `{name}` placeholders. The length bounds constrain the
    name substituted into the template, never the template itself.
    """
    id: int
    texte: str
    applies_to: Optional[EntityKind] = None
    genre: Optional[str] = None
    min_name_length: Optional[int] = None
    max_name_length: Optional[int] = None
    culture_id: Optional[int] = None
    categorie_id: Optional[int] = None

    def accepts_length(self, length: int) -> bool:
        lower = self.min_name_length if self.min_name_length is not None else 0
        if length < lower:
            return False
        if self.max_name_length is not None and length > self.max_name_length:
            return False
        return True


@dataclass(frozen=True)
class Lieu:
    """A place name."""
    id: int
    valeur: str
    type: Optional[str] = None
    categorie_id: Optional[int] = None


@dataclass(frozen=True)
class Concept:
    """Flavor data scoped to a category; not part of the name pipeline."""
    id: int
    valeur: str
    type: Optional[str] = None
    mood: Optional[str] = None
    keywords: Optional[str] = None
    categorie_id: Optional[int] = None

    def keyword_list(self, limit: int = 6) -> List[str]:
        if not self.keywords:
            return []
        parts = self.keywords.replace(';', ',').replace('|', ',').split(',')
        return [p.strip() for p in parts if p.strip()][:limit]


FRAGMENT_TYPES = {
    FragmentKind.PRENOM: Prenom,
    FragmentKind.NOM_FAMILLE: NomFamille,
    FragmentKind.TITRE: Titre,
    FragmentKind.CREATURE: Creature,
    FragmentKind.FRAGMENT_HISTOIRE: FragmentHistoire,
    FragmentKind.LIEU: Lieu,
    FragmentKind.CONCEPT: Concept,
}


# =============================================================================
# Generation result
# =============================================================================

@dataclass
class GeneratedEntity:
    """A composed character, place or creature."""
    kind: EntityKind
    source: Any                     # Prenom, Lieu or Creature the entity is built on
    name: str
    full_name: str
    seed: str
    genre: Optional[str] = None
    culture_id: Optional[int] = None
    categorie_id: Optional[int] = None
    nom_famille: Optional[NomFamille] = None
    titre: Optional[Titre] = None
    companions: List[Creature] = field(default_factory=list)
    biographie: Optional[str] = None
    fragment_histoire: Optional[FragmentHistoire] = None
    relaxations: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        if self.titre is not None:
            return f"{self.titre.valeur} {self.full_name}"
        return self.full_name

    def to_dict(self) -> dict:
        return {
            'kind': self.kind.value,
            'id': self.source.id,
            'name': self.name,
            'full_name': self.full_name,
            'display_name': self.display_name,
            'genre': self.genre,
            'culture_id': self.culture_id,
            'categorie_id': self.categorie_id,
            'nom_famille': {
                'id': self.nom_famille.id,
                'valeur': self.nom_famille.valeur,
            } if self.nom_famille else None,
            'titre': {
                'id': self.titre.id,
                'valeur': self.titre.valeur,
            } if self.titre else None,
            'creatures': [{'id': c.id, 'valeur': c.valeur} for c in self.companions],
            'biographie': self.biographie,
            'fragment_histoire_id': self.fragment_histoire.id if self.fragment_histoire else None,
            'relaxations': {k: list(v) for k, v in self.relaxations.items()},
            'seed': self.seed,
        }
