"""
Tests for Concept Sampling
==========================
Tests for nomina/concepts.py.
"""

import sys
from pathlib import Path

import pytest

# Ensure repo root is on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from conftest import HAUTE, RUINES, SOMBRE, make_catalog
from nomina.catalog import CatalogReader
from nomina.concepts import KEYWORD_FILLERS, MOODS, sample_concepts
from nomina.models import Concept


class TestSampleConcepts:
    """Tests for sample_concepts()."""

    def test_category_draw(self, reader):
        sample = sample_concepts(reader, categorie_id=HAUTE, count=5, seed=1)
        assert not sample.used_fallback
        assert sorted(c.id for c in sample.items) == [1, 2]

    def test_without_replacement(self, reader):
        sample = sample_concepts(reader, count=3, seed="x")
        assert len({c.id for c in sample.items}) == 3

    def test_fallback_to_all_concepts(self, reader):
        sample = sample_concepts(reader, categorie_id=SOMBRE, count=2, seed=2)
        assert sample.used_fallback
        assert len(sample.items) == 2

    def test_reproducible(self, reader):
        a = sample_concepts(reader, count=2, seed=7)
        b = sample_concepts(reader, count=2, seed=7)
        assert a.items == b.items
        assert a.seed == "7"

    def test_fresh_seed(self, reader):
        sample = sample_concepts(reader, categorie_id=RUINES, count=1)
        assert sample.seed
        assert sample.items[0].valeur == "Caravane"

    def test_count_bounds(self, reader):
        with pytest.raises(ValueError):
            sample_concepts(reader, count=0)
        with pytest.raises(ValueError):
            sample_concepts(reader, count=10_000)

    def test_to_dict(self, reader):
        data = sample_concepts(reader, categorie_id=RUINES, count=1, seed=1).to_dict()
        assert data['items'][0]['keywords'] == ["moteur", "troc"]
        assert data['used_fallback'] is False


class TestConceptIdeas:
    """Tests for the pitch material built around each drawn concept."""

    def test_pitch_uses_stored_mood_and_keywords(self, reader):
        sample = sample_concepts(reader, categorie_id=RUINES, count=1, seed=1)
        idea = sample.ideas[0]
        assert idea.mood == "rude"
        assert idea.keywords[:2] == ["moteur", "troc"]
        assert idea.keywords[2] in KEYWORD_FILLERS[2]
        assert "« Caravane » est une idée rude centrée sur moteur et troc." in idea.elevator_pitch
        assert idea.twist.startswith("Twist : troc")
        assert "moteur refait surface" in idea.hook
        assert idea.questions[0] == "Qui contrôle « Caravane » et pourquoi ?"

    def test_missing_mood_and_keywords_filled(self):
        catalog = make_catalog(concept=[Concept(1, "Exil", categorie_id=HAUTE)])
        sample = sample_concepts(CatalogReader(catalog), count=1, seed="e")
        idea = sample.ideas[0]
        assert idea.mood in MOODS
        assert all(k in fillers for k, fillers in zip(idea.keywords, KEYWORD_FILLERS))

    def test_ideas_replay_from_seed(self):
        catalog = make_catalog(concept=[Concept(i, f"Idée {i}") for i in range(1, 6)])
        reader = CatalogReader(catalog)
        a = sample_concepts(reader, count=3, seed="s").to_dict()
        b = sample_concepts(reader, count=3, seed="s").to_dict()
        assert a == b

    def test_to_dict_fields(self, reader):
        item = sample_concepts(reader, categorie_id=HAUTE, count=1, seed=3).to_dict()['items'][0]
        for key in ('elevator_pitch', 'twist', 'hook', 'questions', 'mood', 'categorie_id'):
            assert key in item
        assert len(item['questions']) == 2
