#!/usr/bin/env python3
"""
Parallel Generation
===================
Runs independent generation requests on a thread pool.

Each request is a pure computation over the shared reader, so requests can
run side by side; the reader's PoolCache serialises pool loading. Results
come back in submission order. On the first failure the shared CancelToken
is set so requests that have not started yet stop at their next stage.

Usage:
    from nomina.parallel import ParallelGenerator

    generator = ParallelGenerator(assembler)
    entities = generator.generate_many('character', requests)
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence

from nomina.composition.assembler import CompositionAssembler
from nomina.composition.request import CancelToken, GenerationRequest
from nomina.composition.sampler import derive_seed, new_seed
from nomina.errors import GenerationCancelled
from nomina.models import GeneratedEntity
from nomina.settings import get_setting

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class ParallelConfig:
    """Configuration for parallel generation."""
    workers: Optional[int] = None       # Concurrent requests

    def __post_init__(self):
        if self.workers is None:
            self.workers = get_setting("parallel.workers")
        if self.workers is None:
            raise ValueError("parallel.workers must be set in app.yaml")
        if self.workers < 1:
            raise ValueError("parallel.workers must be >= 1")


# =============================================================================
# Generator
# =============================================================================

class ParallelGenerator:
    """
    Thread-pool front end for a CompositionAssembler.

    Usage:
        generator = ParallelGenerator(assembler, ParallelConfig(workers=8))
        entities = generator.generate_batch('place', GenerationRequest(seed=42), count=20)
    """

    def __init__(self, assembler: CompositionAssembler, config: ParallelConfig = None):
        self.assembler = assembler
        self.config = config or ParallelConfig()
        self._lock = threading.Lock()
        self.completed = 0

    def generate_many(self,
                      kind,
                      requests: Sequence[GenerationRequest],
                      cancel: CancelToken = None,
                      callback: Callable = None) -> List[GeneratedEntity]:
        """
        Generate one entity per request.

        Args:
            kind: Entity kind shared by every request
            requests: Requests to run
            cancel: Optional token; a fresh one is used when omitted
            callback: Optional callback(index, entity) for each completion

        Returns:
            Entities in the order of requests

        Raises:
            The first error raised by any request. Requests cancelled as a
            consequence are not reported.
        """
        cancel = cancel or CancelToken()
        results: List[Optional[GeneratedEntity]] = [None] * len(requests)
        first_error = None

        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            future_to_index = {
                executor.submit(self.assembler.generate, kind, request, cancel): i
                for i, request in enumerate(requests)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    entity = future.result()
                except GenerationCancelled as e:
                    if first_error is None:
                        first_error = e
                    continue
                except Exception as e:
                    logger.warning(f"Generation {index} failed: {e}")
                    if first_error is None or isinstance(first_error, GenerationCancelled):
                        first_error = e
                    cancel.cancel()
                    continue

                results[index] = entity
                with self._lock:
                    self.completed += 1
                if callback:
                    callback(index, entity)

        if first_error is not None:
            raise first_error
        return results

    def generate_batch(self, kind, request: GenerationRequest = None, count: int = None,
                       cancel: CancelToken = None, callback: Callable = None) -> List[GeneratedEntity]:
        """
        Parallel counterpart of CompositionAssembler.generate_batch.

        Item i gets the same derived seed as in the sequential batch, so each
        item replays individually. Items run independently, hence there is
        no preference for names not yet handed out in the batch.
        """
        request = request or GenerationRequest()
        if count is None:
            count = get_setting("generation.default_batch_count", 10)
        max_count = get_setting("generation.max_batch_count", 200)
        if count < 1 or count > max_count:
            raise ValueError(f"count must be between 1 and {max_count}")

        batch_seed = str(request.seed) if request.seed is not None else new_seed()
        requests = [replace(request, seed=derive_seed(batch_seed, i)) for i in range(count)]
        return self.generate_many(kind, requests, cancel=cancel, callback=callback)
