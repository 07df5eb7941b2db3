#!/usr/bin/env python3
"""
Splits a multi-ingredient text block into single ingredient segments.
Line breaks always separate; commas separate only outside parentheses and
when they are not decimal commas ("1,5 cl").
"""

from dataclasses import dataclass
from typing import List

DIGITS = "0123456789"
LINE_BREAKS = ("\n", "\r")


@dataclass(frozen=True)
class IngredientSegment:
    """One ingredient entry with its offsets into the block."""
    text: str
    start: int
    end: int


def is_decimal_comma(value: str, index: int) -> bool:
    """A comma is decimal when both direct neighbours are digits."""
    if index <= 0 or index + 1 >= len(value):
        return False
    return value[index - 1] in DIGITS and value[index + 1] in DIGITS


def _trimmed_segment(value: str, start: int, end: int):
    while start < end and value[start].isspace():
        start += 1
    while end > start and value[end - 1].isspace():
        end -= 1
    if end <= start:
        return None
    return IngredientSegment(value[start:end], start, end)


def split_ingredient_tuples(value: str) -> List[IngredientSegment]:
    """
    Split an ingredient block into trimmed, non-empty segments.

    Args:
        value: Free-text block, e.g. "1,5 cl Sirup, 2 cl Rum (weiss, kubanisch)"

    Returns:
        Segments in block order with half-open offsets
    """
    segments: List[IngredientSegment] = []
    if not value:
        return segments

    length = len(value)
    start = None
    depth = 0

    # One virtual line break past the end flushes the last segment
    for index in range(length + 1):
        char = value[index] if index < length else "\n"
        is_break = char in LINE_BREAKS
        is_comma = char == ","

        if char == "(":
            depth += 1
        elif char == ")" and depth > 0:
            depth -= 1

        if start is None:
            if is_break or char.isspace():
                continue
            if is_comma and not is_decimal_comma(value, index):
                continue
            start = index
            continue

        if is_break or (is_comma and depth == 0 and not is_decimal_comma(value, index)):
            segment = _trimmed_segment(value, start, index)
            if segment is not None:
                segments.append(segment)
            start = None
            depth = 0

    return segments
