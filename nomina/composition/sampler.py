#!/usr/bin/env python3
"""
Weighted Sampler
================
Uniform, seed-deterministic selection from a filtered pool.

Catalog records carry no weight or popularity field, so every fragment of
a pool is equally likely. Given the same pool (same records, same order)
and the same seed, the same fragment is returned.
"""

import random
import secrets
from typing import Any, List, Sequence, Union

from nomina.errors import EmptyPool

Seed = Union[int, str]


def new_seed() -> str:
    """Fresh seed from the system entropy pool, returned to callers for replay."""
    return secrets.token_hex(8)


def derive_seed(seed: Seed, *parts: Any) -> str:
    """Stable sub-seed for one stage/item of a request."""
    return ':'.join(str(p) for p in (seed, *parts))


def pick(pool: Sequence, seed: Seed) -> Any:
    """
    Pick one fragment.

    Raises:
        EmptyPool: if pool is empty
    """
    if not pool:
        raise EmptyPool("Cannot pick from an empty pool")
    rng = random.Random(seed)
    return pool[rng.randrange(len(pool))]


def pick_many(pool: Sequence, count: int, seed: Seed, distinct: bool = False) -> List[Any]:
    """
    Pick count fragments.

    Independent draws (repeats allowed) by default. With distinct=True the
    draw is without replacement and stops when the pool runs out.

    Raises:
        EmptyPool: if count > 0 and pool is empty
    """
    if count < 0:
        raise ValueError("count must be >= 0")
    if count == 0:
        return []
    if not pool:
        raise EmptyPool("Cannot pick from an empty pool")
    rng = random.Random(seed)
    if distinct:
        return rng.sample(list(pool), min(count, len(pool)))
    return [pool[rng.randrange(len(pool))] for _ in range(count)]
