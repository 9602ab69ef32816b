"""Shared catalog fixtures."""

import sys
from pathlib import Path

import pytest

# Ensure repo root is on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from nomina.catalog import CatalogReader, InMemoryCatalog
from nomina.models import (
    Categorie,
    Concept,
    Creature,
    Culture,
    EntityKind,
    FragmentHistoire,
    FragmentKind,
    Lieu,
    NomFamille,
    Prenom,
    Titre,
    UniversThematique,
)

SEED_FILE = ROOT / "nomina" / "catalog" / "data" / "seed.yaml"

ELVEN, HUMAN = 1, 2
HAUTE, SOMBRE, RUINES = 1, 2, 3


def make_catalog(**pools) -> InMemoryCatalog:
    """Small catalog; keyword arguments replace whole pools."""
    defaults = {
        FragmentKind.PRENOM: [
            Prenom(1, "Elanor", "f", ELVEN, HAUTE),
            Prenom(2, "Aelar", "m", ELVEN, HAUTE),
            Prenom(3, "Isabeau", "f", HUMAN, HAUTE),
            Prenom(4, "Eo", "nb"),
        ],
        FragmentKind.NOM_FAMILLE: [
            NomFamille(1, "Sylvaran", ELVEN),
            NomFamille(2, "Marchegris", HUMAN),
        ],
        FragmentKind.TITRE: [
            Titre(1, "Dame", "noblesse", "f", HUMAN),
        ],
        FragmentKind.CREATURE: [
            Creature(1, "Aegirion", "Aquatique", None, None, ELVEN, HAUTE),
            Creature(2, "Renard des Brumes", "Féerique"),
        ],
        FragmentKind.FRAGMENT_HISTOIRE: [
            FragmentHistoire(1, "{name} grandit sous les grands arbres.", EntityKind.CHARACTER,
                             min_name_length=3, max_name_length=40, culture_id=ELVEN),
            FragmentHistoire(2, "Nul ne sait d'où vient {name}.", EntityKind.CHARACTER,
                             min_name_length=3),
            FragmentHistoire(3, "{name} se dresse au bord d'un lac.", EntityKind.PLACE),
            FragmentHistoire(4, "On chante encore la chasse de {name}.", EntityKind.CREATURE),
        ],
        FragmentKind.LIEU: [
            Lieu(1, "Lothariel", "cité", HAUTE),
            Lieu(2, "Port-Brume", "port"),
            Lieu(3, "Dépôt 9", "ruine", RUINES),
        ],
        FragmentKind.CONCEPT: [
            Concept(1, "Prophétie oubliée", "intrigue", "épique", "destin, oracle", HAUTE),
            Concept(2, "Tournoi", "événement", "festif", "joute; honneur", HAUTE),
            Concept(3, "Caravane", "faction", "rude", "moteur|troc", RUINES),
        ],
    }
    for name, records in pools.items():
        defaults[FragmentKind(name)] = records
    return InMemoryCatalog(
        cultures=[Culture(ELVEN, "Elfique"), Culture(HUMAN, "Humaine")],
        categories=[
            Categorie(HAUTE, "Haute Fantasy", univers_id=1),
            Categorie(SOMBRE, "Dark Fantasy", univers_id=1),
            Categorie(RUINES, "Post-Apocalyptique", univers_id=2),
        ],
        univers=[UniversThematique(1, "Royaumes Anciens"), UniversThematique(2, "Terres Brisées")],
        pools=defaults,
    )


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def reader(catalog):
    return CatalogReader(catalog)


@pytest.fixture
def seed_reader():
    """Reader over the shipped seed catalog."""
    return CatalogReader(InMemoryCatalog.from_seed(SEED_FILE))
