#!/usr/bin/env python3
"""
Biography Renderer
==================
Fills a history fragment template with the composed name.

The fragment's min/max name length bounds the substituted name. The bound
is checked before rendering; the constraint filter should already have
excluded any fragment that fails it.
"""

import re
from typing import Optional

from nomina.errors import InconsistentComposition
from nomina.models import FragmentHistoire
from nomina.settings import get_setting

_SENTENCE_SPLIT = re.compile(r'(?<=[.!?])\s+')


class BiographyRenderer:
    """Substitutes a name into history fragment templates."""

    def __init__(self, placeholder: str = None):
        if placeholder is None:
            placeholder = get_setting("generation.placeholder", "{name}")
        self.placeholder = placeholder

    def render(self, fragment: FragmentHistoire, composed_name: str) -> str:
        """
        Render a fragment for a name.

        Raises:
            InconsistentComposition: if the name length is outside the
                fragment's bounds
        """
        length = len(composed_name)
        if not fragment.accepts_length(length):
            raise InconsistentComposition(
                'biographie',
                f"name '{composed_name}' ({length} chars) outside bounds "
                f"[{fragment.min_name_length}, {fragment.max_name_length}] of fragment {fragment.id}",
            )
        return fragment.texte.replace(self.placeholder, composed_name).strip()


def mini_bio(text: Optional[str], max_sentences: int = None, max_chars: int = None) -> Optional[str]:
    """
    Shorten a biography to its first sentences.

    Keeps whole sentences only, up to max_sentences and max_chars. Returns
    None for empty input or when even the first sentence is too long.
    """
    if not text or not text.strip():
        return None
    if max_sentences is None:
        max_sentences = get_setting("biography.max_sentences")
    if max_chars is None:
        max_chars = get_setting("biography.max_chars")
    if max_sentences is None or max_chars is None:
        raise ValueError("biography.max_sentences/max_chars must be set in app.yaml")

    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(text.strip()) if s.strip()]
    out = []
    for sentence in sentences[:int(max_sentences)]:
        if len(' '.join(out + [sentence])) > int(max_chars):
            break
        out.append(sentence)
    result = ' '.join(out).strip()
    return result or None
