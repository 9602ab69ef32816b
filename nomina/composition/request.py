#!/usr/bin/env python3
"""Generation request and cooperative cancellation."""

import threading
from dataclasses import dataclass
from typing import Optional, Union

from nomina.errors import GenerationCancelled
from nomina.models import normalize_genre


@dataclass(frozen=True)
class GenerationRequest:
    """
    What the caller asks for.

    culture_id / categorie_id / univers_id pin the scope for every stage and
    are never relaxed. genre is a soft preference: the relaxation ladder may
    drop it when no fragment matches.
    """
    culture_id: Optional[int] = None
    categorie_id: Optional[int] = None
    univers_id: Optional[int] = None
    genre: Optional[str] = None
    seed: Optional[Union[int, str]] = None
    companion_count: Optional[int] = None
    distinct_companions: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'genre', normalize_genre(self.genre))
        if self.companion_count is not None and self.companion_count < 0:
            raise ValueError("companion_count must be >= 0")


class CancelToken:
    """
    Cooperative cancellation flag shared between a caller and a request.

    The assembler checks it between stages; a stage in progress always
    runs to completion.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: str) -> None:
        if self._event.is_set():
            raise GenerationCancelled(stage)
