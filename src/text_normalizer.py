#!/usr/bin/env python3
"""
Text normalization shared by index lookups and fuzzy comparison.
"""

import unicodedata


def normalize(text: str) -> str:
    """
    Lowercase, strip diacritics and collapse whitespace.

    "  Angostúra   BITTERS " -> "angostura bitters"
    """
    if not text:
        return ""

    # Lowercase before decomposing: some lowercase mappings emit combining marks
    decomposed = unicodedata.normalize('NFD', text.lower())
    stripped = ''.join(ch for ch in decomposed if not unicodedata.combining(ch))
    return ' '.join(stripped.split())
