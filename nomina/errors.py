#!/usr/bin/env python3
"""
Error Taxonomy
==============
Exceptions raised by the catalog and the composition pipeline.

- CatalogUnavailable: backing store cannot be reached (surfaced unchanged)
- EmptyPool / NoCandidates: internal signals consumed by the relaxation ladder
- CompositionFailed: a mandatory field exhausted its relaxation ladder
- InconsistentComposition: invariant violation, always fatal
- GenerationCancelled: request cancelled between stages
"""

from typing import Optional


class NominaError(Exception):
    """Base class for all Nomina errors."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class CatalogUnavailable(NominaError):
    """The catalog backing store could not be reached."""


class EmptyPool(NominaError):
    """A pool had no fragment to pick from."""


class NoCandidates(EmptyPool):
    """Filtering narrowed a pool down to nothing."""


class CompositionFailed(NominaError):
    """A mandatory field could not be composed."""

    def __init__(self, stage: str, message: Optional[str] = None):
        super().__init__(message or f"No candidate left for mandatory field '{stage}'", stage)


class InconsistentComposition(NominaError):
    """A composed entity broke a scoping invariant."""

    def __init__(self, stage: str, detail: str):
        super().__init__(f"Inconsistent composition at '{stage}': {detail}", stage)
        self.detail = detail


class GenerationCancelled(NominaError):
    """A generation request was cancelled between stages."""

    def __init__(self, stage: str):
        super().__init__(f"Generation cancelled before '{stage}'", stage)


__all__ = [
    'NominaError',
    'CatalogUnavailable',
    'EmptyPool',
    'NoCandidates',
    'CompositionFailed',
    'InconsistentComposition',
    'GenerationCancelled',
]
