#!/usr/bin/env python3
"""
Catalog Record Loading
======================
Turns raw rows (YAML seed entries, SQLite rows) into catalog records and
decides which records are well formed enough to be served.
"""

import logging
from dataclasses import MISSING, fields
from functools import lru_cache, partial
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import yaml

from nomina.models import (
    Categorie,
    Culture,
    EntityKind,
    FragmentHistoire,
    FragmentKind,
    FRAGMENT_TYPES,
    UniversThematique,
    normalize_genre,
)

logger = logging.getLogger(__name__)


# YAML section name for each pool kind
SECTIONS = {
    FragmentKind.PRENOM: 'prenoms',
    FragmentKind.NOM_FAMILLE: 'noms_famille',
    FragmentKind.TITRE: 'titres',
    FragmentKind.CREATURE: 'creatures',
    FragmentKind.FRAGMENT_HISTOIRE: 'fragments_histoire',
    FragmentKind.LIEU: 'lieux',
    FragmentKind.CONCEPT: 'concepts',
}

# camelCase keys of JSON exports and their record field
_KEY_ALIASES = {
    'cultureId': 'culture_id',
    'categorieId': 'categorie_id',
    'universId': 'univers_id',
    'personnageId': 'personnage_id',
    'appliesTo': 'applies_to',
    'minNameLength': 'min_name_length',
    'maxNameLength': 'max_name_length',
    'value': 'valeur',
}

_INT_FIELDS = {
    'id', 'culture_id', 'categorie_id', 'univers_id', 'personnage_id',
    'min_name_length', 'max_name_length',
}

# Free-text fields; YAML turns bare numbers into ints
_TEXT_FIELDS = {'valeur', 'texte', 'name', 'description', 'type', 'mood', 'keywords'}


def _optional_int(key: str, value: Any) -> Optional[int]:
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValueError(f"{key} is not an integer: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} is not an integer: {value!r}") from None


def _clean(data: Dict[str, Any], record_type) -> Dict[str, Any]:
    allowed = {f.name for f in fields(record_type)}
    out = {}
    for key, value in data.items():
        key = _KEY_ALIASES.get(key, key)
        if key not in allowed:
            continue
        if key in _INT_FIELDS:
            value = _optional_int(key, value)
        elif key in _TEXT_FIELDS and value is not None and not isinstance(value, str):
            value = str(value)
        if isinstance(value, str):
            value = value.strip()
        out[key] = value
    # Missing required fields stay None so the shape check can reject them
    for f in fields(record_type):
        if f.default is MISSING and f.default_factory is MISSING:
            out.setdefault(f.name, None)
    return out


def build_record(kind: FragmentKind, data: Dict[str, Any]):
    """Build one fragment record from a raw mapping."""
    record_type = FRAGMENT_TYPES[kind]
    values = _clean(data, record_type)
    if 'genre' in values:
        values['genre'] = normalize_genre(values['genre'])
    if kind is FragmentKind.FRAGMENT_HISTOIRE:
        applies_to = values.get('applies_to')
        try:
            values['applies_to'] = EntityKind.parse(applies_to) if applies_to else None
        except ValueError:
            values['applies_to'] = None
    return record_type(**values)


def build_culture(data: Dict[str, Any]) -> Culture:
    return Culture(**_clean(data, Culture))


def build_categorie(data: Dict[str, Any]) -> Categorie:
    return Categorie(**_clean(data, Categorie))


def build_univers(data: Dict[str, Any]) -> UniversThematique:
    return UniversThematique(**_clean(data, UniversThematique))


def build_all(builder: Callable[[Dict[str, Any]], Any], rows: Iterable, label: str) -> List:
    """
    Build every row with builder, skipping rows that cannot be converted.

    A row whose reference or bound is not an integer (culture_id: elfe)
    is dropped with a warning instead of failing the whole load.
    """
    records = []
    for row in rows:
        if not isinstance(row, dict):
            logger.warning("Skipping malformed %s entry: %r", label, row)
            continue
        try:
            records.append(builder(row))
        except ValueError as e:
            logger.warning("Skipping malformed %s %s: %s", label, row.get('id', '?'), e)
    return records


def build_records(kind: FragmentKind, rows: Iterable) -> List:
    """Build the fragment records of one kind, skipping malformed rows."""
    return build_all(partial(build_record, kind), rows, kind.value)


def shape_problem(record, culture_ids, categorie_ids) -> Optional[str]:
    """
    Return why a record must not be served, or None if it is well formed.

    Checks: non-empty value/text, references that resolve to existing
    cultures/categories, coherent length bounds and a known scope on
    history fragments.
    """
    if record.id is None:
        return "missing id"
    text = getattr(record, 'texte', None) if isinstance(record, FragmentHistoire) else getattr(record, 'valeur', None)
    if text is not None and not isinstance(text, str):
        return f"value is not text: {text!r}"
    if not text or not text.strip():
        return "empty value"

    culture_id = getattr(record, 'culture_id', None)
    if culture_id is not None and culture_id not in culture_ids:
        return f"unknown culture {culture_id}"
    categorie_id = getattr(record, 'categorie_id', None)
    if categorie_id is not None and categorie_id not in categorie_ids:
        return f"unknown categorie {categorie_id}"

    if isinstance(record, FragmentHistoire):
        if record.applies_to is None:
            return "missing or unknown applies_to"
        low, high = record.min_name_length, record.max_name_length
        if low is not None and low < 0:
            return "negative min_name_length"
        if low is not None and high is not None and low > high:
            return f"min_name_length {low} > max_name_length {high}"
    return None


# =============================================================================
# Seed files
# =============================================================================

@lru_cache(maxsize=4)
def _read_yaml(path: str) -> Dict:
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def load_seed(path: Path) -> Dict[str, List]:
    """
    Load a YAML seed catalog.

    Returns a mapping with 'cultures', 'categories', 'univers' and one entry
    per FragmentKind (keyed by the kind itself) holding built records.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing seed catalog: {path}")
    raw = _read_yaml(str(path.resolve()))

    catalog: Dict[Any, List] = {
        'univers': build_all(build_univers, raw.get('univers') or [], 'univers'),
        'cultures': build_all(build_culture, raw.get('cultures') or [], 'culture'),
        'categories': build_all(build_categorie, raw.get('categories') or [], 'categorie'),
    }
    for kind, section in SECTIONS.items():
        catalog[kind] = build_records(kind, raw.get(section) or [])

    logger.debug(
        "Loaded seed %s: %d cultures, %d categories, %d prenoms",
        path, len(catalog['cultures']), len(catalog['categories']),
        len(catalog[FragmentKind.PRENOM]),
    )
    return catalog
