"""
Tests for the Sampler
=====================
Tests for seeded selection in nomina/composition/sampler.py.
"""

import sys
from pathlib import Path

import pytest

# Ensure repo root is on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from nomina.composition.sampler import derive_seed, new_seed, pick, pick_many
from nomina.errors import EmptyPool

POOL = tuple(f"name-{i}" for i in range(20))


class TestPick:
    """Tests for pick()."""

    def test_deterministic(self):
        for seed in (0, 1, 42, "abc", "f00d:3:prenom"):
            assert pick(POOL, seed) == pick(POOL, seed)

    def test_returns_pool_member(self):
        assert pick(POOL, 7) in POOL

    def test_seeds_spread_over_pool(self):
        picks = {pick(POOL, seed) for seed in range(200)}
        assert len(picks) > 10

    def test_single_element(self):
        assert pick(("only",), "any") == "only"

    def test_empty_pool_raises(self):
        with pytest.raises(EmptyPool):
            pick((), 1)


class TestPickMany:
    """Tests for pick_many()."""

    def test_zero_count(self):
        assert pick_many((), 0, 1) == []

    def test_negative_count(self):
        with pytest.raises(ValueError):
            pick_many(POOL, -1, 1)

    def test_empty_pool_raises(self):
        with pytest.raises(EmptyPool):
            pick_many((), 2, 1)

    def test_repeats_allowed_by_default(self):
        picks = pick_many(("a", "b"), 10, "seed")
        assert len(picks) == 10
        assert set(picks) <= {"a", "b"}

    def test_distinct_caps_at_pool_size(self):
        picks = pick_many(("a", "b", "c"), 5, "seed", distinct=True)
        assert sorted(picks) == ["a", "b", "c"]

    def test_deterministic(self):
        assert pick_many(POOL, 5, 9) == pick_many(POOL, 5, 9)


class TestSeeds:
    """Tests for seed helpers."""

    def test_new_seed_is_fresh(self):
        a, b = new_seed(), new_seed()
        assert a != b
        assert len(a) == 16
        int(a, 16)

    def test_derive_seed(self):
        assert derive_seed("abc", 3, "prenom") == "abc:3:prenom"
        assert derive_seed(42, "titre") != derive_seed(42, "prenom")
