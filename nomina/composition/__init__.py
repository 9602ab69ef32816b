"""Composition pipeline: filter, sample, assemble, render and validate."""

from nomina.composition.filters import Constraints
from nomina.composition.request import CancelToken, GenerationRequest
from nomina.composition.sampler import derive_seed, new_seed, pick, pick_many
from nomina.composition.relaxation import RELAXATION_LADDER, narrow
from nomina.composition.biography import BiographyRenderer, mini_bio
from nomina.composition.validator import ResultValidator
from nomina.composition.assembler import STAGES, CompositionAssembler

__all__ = [
    'Constraints',
    'CancelToken',
    'GenerationRequest',
    'derive_seed',
    'new_seed',
    'pick',
    'pick_many',
    'RELAXATION_LADDER',
    'narrow',
    'BiographyRenderer',
    'mini_bio',
    'ResultValidator',
    'STAGES',
    'CompositionAssembler',
]
