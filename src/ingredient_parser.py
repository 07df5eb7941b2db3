#!/usr/bin/env python3
"""
Ingredient line parser for cocktail recipes.
Turns free-text lines such as "2 cl Bacardi" or "50% Filler Maracuja" into
amount, unit, ingredient and notes with per-field statuses, a confidence
score and autocomplete suggestions.
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Any, Dict, List, Optional, Tuple

import structlog

from ingredient_segmenter import split_ingredient_tuples
from master_data import (
    MasterData, MatchStatus, Resolution, build_master_data, resolve_ingredient, resolve_unit
)
from monitoring_logging import LINES_PARSED, configure_logging
from parser_config import ParserConfig, config
from text_normalizer import normalize

logger = structlog.get_logger(__name__)


class TokenType(str, Enum):
    AMOUNT = "amount"
    UNIT = "unit"
    INGREDIENT = "ingredient"
    NOTES = "notes"


class AmountStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    AMBIGUOUS = "ambiguous"
    INVALID = "invalid"


@dataclass(frozen=True)
class IngredientToken:
    """Typed span of the raw line, offsets are half-open."""
    type: TokenType
    start: int
    end: int
    text: str


@dataclass
class ParseStatuses:
    amount: AmountStatus = AmountStatus.EMPTY
    unit: MatchStatus = MatchStatus.MISSING
    ingredient: MatchStatus = MatchStatus.MISSING


@dataclass
class ParseSuggestions:
    units: List[str] = field(default_factory=list)
    ingredients: List[str] = field(default_factory=list)


@dataclass
class ParsedIngredient:
    """Structured ingredient line."""
    raw: str
    amount: Optional[float] = None
    amount_text: Optional[str] = None
    unit: Optional[str] = None
    unit_raw: Optional[str] = None
    ingredient: Optional[str] = None
    ingredient_raw: Optional[str] = None
    notes: Optional[str] = None
    confidence: float = 0.0
    statuses: ParseStatuses = field(default_factory=ParseStatuses)
    suggestions: ParseSuggestions = field(default_factory=ParseSuggestions)
    tokens: List[IngredientToken] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "raw": self.raw,
            "amount": self.amount,
            "amount_text": self.amount_text,
            "unit": self.unit,
            "unit_raw": self.unit_raw,
            "ingredient": self.ingredient,
            "ingredient_raw": self.ingredient_raw,
            "notes": self.notes,
            "confidence": self.confidence,
            "statuses": {
                "amount": self.statuses.amount.value,
                "unit": self.statuses.unit.value,
                "ingredient": self.statuses.ingredient.value,
            },
            "suggestions": {
                "units": list(self.suggestions.units),
                "ingredients": list(self.suggestions.ingredients),
            },
            "tokens": [
                {"type": token.type.value, "start": token.start, "end": token.end, "text": token.text}
                for token in self.tokens
            ],
        }

    def is_valid(self) -> bool:
        """Check if an ingredient name was found."""
        return bool(self.ingredient and self.ingredient.strip())


# Confidence weights per status
AMOUNT_SCORES = {
    AmountStatus.OK: 1.0,
    AmountStatus.EMPTY: 0.6,
    AmountStatus.AMBIGUOUS: 0.4,
    AmountStatus.INVALID: 0.0,
}
UNIT_SCORES = {
    MatchStatus.OK: 1.0,
    MatchStatus.FUZZY: 0.7,
    MatchStatus.MISSING: 0.3,
    MatchStatus.NEW: 0.2,
}
INGREDIENT_SCORES = {
    MatchStatus.OK: 1.0,
    MatchStatus.FUZZY: 0.7,
    MatchStatus.MISSING: 0.0,
    MatchStatus.NEW: 0.3,
}

VULGAR_FRACTIONS = {
    '½': Fraction(1, 2), '¼': Fraction(1, 4), '¾': Fraction(3, 4),
    '⅓': Fraction(1, 3), '⅔': Fraction(2, 3), '⅛': Fraction(1, 8),
    '⅜': Fraction(3, 8), '⅝': Fraction(5, 8), '⅞': Fraction(7, 8),
}
_VULGAR = '[' + ''.join(VULGAR_FRACTIONS) + ']'

RANGE_PATTERN = re.compile(r'\d+(?:[.,]\d+)?\s*-\s*\d+(?:[.,]\d+)?', re.ASCII)
MIXED_PATTERN = re.compile(r'(\d+)\s+(\d+)/(\d+)|(\d+)\s*(' + _VULGAR + ')', re.ASCII)
FRACTION_PATTERN = re.compile(r'(\d+)/(\d+)', re.ASCII)
DECIMAL_PATTERN = re.compile(r'\d+[.,]\d+', re.ASCII)
# "%" is accepted so a percent amount classifies like a plain integer
INTEGER_PATTERN = re.compile(r'(\d+)\s*%?', re.ASCII)

# Candidates in priority order; the first alternative that matches wins
AMOUNT_PATTERN = re.compile(
    r'(?P<range>\d+(?:[.,]\d+)?\s*-\s*\d+(?:[.,]\d+)?)'
    r'|(?P<mixed>\d+\s+\d+/\d+|\d+\s*' + _VULGAR + ')'
    r'|(?P<vulgar>' + _VULGAR + ')'
    r'|(?P<fraction>\d+/\d+)'
    r'|(?P<decimal>\d+[.,]\d+)'
    r'|(?P<integer>\d+)'
    r'|(?P<dash>-)',
    re.ASCII
)
MALFORMED_TAIL = re.compile(r'(?:[.,/]\d+)+', re.ASCII)
PERCENT_PATTERN = re.compile(r'(\d{1,3})\s*%', re.ASCII)
FILLER_PATTERN = re.compile(r'filler\b', re.IGNORECASE)
UNIT_WORD_PATTERN = re.compile(r'[^\s,()]+')
CONNECTOR_PATTERN = re.compile(r'(?:von|vom|mit|of)\s+', re.IGNORECASE)

FILLER_UNIT = "Filler"


@dataclass(frozen=True)
class AmountMatch:
    start: int
    end: int
    value: Optional[float]
    status: AmountStatus
    text: str


@dataclass(frozen=True)
class UnitMatch:
    start: int
    end: int
    resolution: Resolution


@dataclass(frozen=True)
class IngredientSpans:
    """Ingredient text pieces and parenthesised notes of a line remainder."""
    pieces: Tuple[Tuple[int, int], ...]
    notes: Tuple[Tuple[int, int], ...]


def compute_confidence(statuses: ParseStatuses) -> float:
    """Mean of the per-field scores, rounded to two decimals."""
    score = (
        AMOUNT_SCORES[statuses.amount]
        + UNIT_SCORES[statuses.unit]
        + INGREDIENT_SCORES[statuses.ingredient]
    ) / 3
    return min(max(round(score, 2), 0.0), 1.0)


def skip_whitespace(text: str, position: int) -> int:
    while position < len(text) and text[position].isspace():
        position += 1
    return position


def _to_float(value: Fraction) -> Optional[float]:
    try:
        return float(value)
    except OverflowError:
        return None


def _finite_amount(number: float, text: str) -> Tuple[Optional[float], AmountStatus, str]:
    # float() saturates very long digit runs to inf instead of raising
    if not math.isfinite(number):
        return None, AmountStatus.INVALID, text
    return number, AmountStatus.OK, text


def parse_amount(token: str) -> Tuple[Optional[float], AmountStatus, str]:
    """
    Classify an amount token.

    Args:
        token: Amount text, e.g. "2", "1,5", "1/2", "½", "1-2" or "-"

    Returns:
        Tuple of (value, status, text); ranges return the compact range text
    """
    trimmed = token.strip()
    if not trimmed:
        return None, AmountStatus.EMPTY, ""
    if trimmed == "-":
        return None, AmountStatus.EMPTY, "-"

    if RANGE_PATTERN.fullmatch(trimmed):
        return None, AmountStatus.AMBIGUOUS, re.sub(r'\s+', '', trimmed)

    if trimmed in VULGAR_FRACTIONS:
        return float(VULGAR_FRACTIONS[trimmed]), AmountStatus.OK, trimmed

    try:
        mixed = MIXED_PATTERN.fullmatch(trimmed)
        if mixed:
            if mixed.group(5):
                value = int(mixed.group(4)) + VULGAR_FRACTIONS[mixed.group(5)]
            elif int(mixed.group(3)) == 0:
                return None, AmountStatus.INVALID, trimmed
            else:
                value = int(mixed.group(1)) + Fraction(int(mixed.group(2)), int(mixed.group(3)))
            number = _to_float(value)
            return number, AmountStatus.OK if number is not None else AmountStatus.INVALID, trimmed

        fraction = FRACTION_PATTERN.fullmatch(trimmed)
        if fraction:
            numerator, denominator = int(fraction.group(1)), int(fraction.group(2))
            if denominator == 0:
                return None, AmountStatus.INVALID, trimmed
            number = _to_float(Fraction(numerator, denominator))
            return number, AmountStatus.OK if number is not None else AmountStatus.INVALID, trimmed
    except ValueError:
        # int() refuses extremely long digit strings
        return None, AmountStatus.INVALID, trimmed

    if DECIMAL_PATTERN.fullmatch(trimmed):
        number = float(trimmed.replace(',', '.'))
        return _finite_amount(number, trimmed)

    integer = INTEGER_PATTERN.fullmatch(trimmed)
    if integer:
        # TODO: percent amounts share the ok status with plain integers; split
        # them if callers need to tell a fill percentage from a count.
        return _finite_amount(float(integer.group(1)), trimmed)

    return None, AmountStatus.INVALID, trimmed


def match_percent(raw: str, position: int) -> Optional[AmountMatch]:
    """Match a leading "NN%" amount."""
    match = PERCENT_PATTERN.match(raw, position)
    if not match:
        return None
    value, status, _ = parse_amount(match.group())
    compact = re.sub(r'\s+', '', match.group())
    return AmountMatch(match.start(), match.end(), value, status, compact)


def match_amount(raw: str, position: int) -> Optional[AmountMatch]:
    """
    Match the amount at ``position``.

    A number that runs on into more separators and digits ("1.5.2") is
    consumed whole and marked invalid.
    """
    match = AMOUNT_PATTERN.match(raw, position)
    if not match:
        return None

    end = match.end()
    if match.lastgroup in ("mixed", "fraction", "decimal"):
        tail = MALFORMED_TAIL.match(raw, end)
        if tail:
            end = tail.end()
            return AmountMatch(position, end, None, AmountStatus.INVALID, raw[position:end])

    value, status, text = parse_amount(match.group())
    return AmountMatch(position, end, value, status, text)


def match_unit(raw: str, position: int, master_data: MasterData,
               settings: Optional[ParserConfig] = None) -> Optional[UnitMatch]:
    """
    Match the unit word after ``position``.

    A word that does not resolve is retried together with the following
    word ("Bar spoon"); without a match the single-word result is kept and
    only the first word is consumed, even when it resolved to missing.
    """
    start = skip_whitespace(raw, position)
    first = UNIT_WORD_PATTERN.match(raw, start)
    if not first:
        return None

    first_resolution = resolve_unit(first.group(), master_data, settings)
    if first_resolution.name:
        return UnitMatch(start, first.end(), first_resolution)

    second_start = skip_whitespace(raw, first.end())
    second = UNIT_WORD_PATTERN.match(raw, second_start)
    if second:
        combined = f"{first.group()} {second.group()}"
        combined_resolution = resolve_unit(combined, master_data, settings)
        if combined_resolution.name:
            return UnitMatch(start, second.end(), combined_resolution)

    return UnitMatch(start, first.end(), first_resolution)


def _trim_span(raw: str, start: int, end: int) -> Tuple[int, int]:
    while start < end and (raw[start].isspace() or raw[start] == ','):
        start += 1
    while end > start and (raw[end - 1].isspace() or raw[end - 1] == ','):
        end -= 1
    return start, end


def match_ingredient(raw: str, position: int) -> IngredientSpans:
    """
    Split the line remainder into ingredient pieces and notes.

    A leading connector word (von, vom, mit, of) and trailing commas are
    dropped. Top-level parenthesised groups become notes; an unclosed
    group runs to the end of the line.
    """
    start, end = _trim_span(raw, skip_whitespace(raw, position), len(raw))
    connector = CONNECTOR_PATTERN.match(raw, start, end)
    if connector:
        start = connector.end()

    pieces: List[Tuple[int, int]] = []
    notes: List[Tuple[int, int]] = []
    depth = 0
    piece_start = start
    note_start = start
    for index in range(start, end):
        char = raw[index]
        if char == '(':
            if depth == 0:
                pieces.append((piece_start, index))
                note_start = index
            depth += 1
        elif char == ')' and depth > 0:
            depth -= 1
            if depth == 0:
                notes.append((note_start, index + 1))
                piece_start = index + 1

    if depth > 0:
        notes.append((note_start, end))
    else:
        pieces.append((piece_start, end))

    trimmed = (_trim_span(raw, span_start, span_end) for span_start, span_end in pieces)
    return IngredientSpans(
        pieces=tuple(span for span in trimmed if span[1] > span[0]),
        notes=tuple(notes),
    )


class IngredientParser:
    """Parser for cocktail ingredient lines."""

    def __init__(self, settings: Optional[ParserConfig] = None):
        """
        Initialize ingredient parser.

        Args:
            settings: Resolution thresholds, defaults to the module configuration
        """
        self.settings = settings or config

    def parse_ingredient_line(self, text: str, master_data: MasterData) -> ParsedIngredient:
        """
        Parse a single ingredient segment.

        Never raises: problems are reported through the statuses.

        Args:
            text: Raw segment text
            master_data: Vocabulary snapshot

        Returns:
            Parsed ingredient with tokens relative to ``text``
        """
        raw = text or ""
        result = ParsedIngredient(raw=raw)
        position = skip_whitespace(raw, 0)

        if position >= len(raw):
            return self._finish(result)

        amount = match_percent(raw, position)
        if amount:
            self._apply_amount(result, amount)
            position = skip_whitespace(raw, amount.end)

            filler = FILLER_PATTERN.match(raw, position)
            if filler:
                result.unit = FILLER_UNIT
                result.unit_raw = filler.group()
                result.statuses.unit = MatchStatus.OK
                result.tokens.append(IngredientToken(TokenType.UNIT, filler.start(), filler.end(), filler.group()))
                self._apply_ingredient(result, raw, filler.end(), master_data)
                return self._finish(result)
        else:
            amount = match_amount(raw, position)
            if amount:
                self._apply_amount(result, amount)
                position = amount.end

        unit = match_unit(raw, position, master_data, self.settings)
        if unit:
            unit_raw = raw[unit.start:unit.end]
            resolution = unit.resolution
            result.unit_raw = unit_raw
            if resolution.status != MatchStatus.MISSING:
                result.unit = resolution.name or normalize(unit_raw) or unit_raw
            result.statuses.unit = resolution.status
            result.suggestions.units = list(resolution.suggestions)
            result.tokens.append(IngredientToken(TokenType.UNIT, unit.start, unit.end, unit_raw))
            position = unit.end

        self._apply_ingredient(result, raw, position, master_data)

        return self._finish(result)

    def _apply_amount(self, result: ParsedIngredient, amount: AmountMatch):
        result.amount = amount.value
        result.amount_text = amount.text
        result.statuses.amount = amount.status
        result.tokens.append(IngredientToken(
            TokenType.AMOUNT, amount.start, amount.end, result.raw[amount.start:amount.end]
        ))

    def _apply_ingredient(self, result: ParsedIngredient, raw: str, position: int,
                          master_data: MasterData):
        spans = match_ingredient(raw, position)

        for start, end in spans.pieces:
            result.tokens.append(IngredientToken(TokenType.INGREDIENT, start, end, raw[start:end]))
        for start, end in spans.notes:
            result.tokens.append(IngredientToken(TokenType.NOTES, start, end, raw[start:end]))

        if spans.notes:
            result.notes = " ".join(raw[start:end] for start, end in spans.notes)

        ingredient_text = " ".join(raw[start:end] for start, end in spans.pieces)
        if not ingredient_text:
            result.statuses.ingredient = MatchStatus.MISSING
            return

        resolution = resolve_ingredient(ingredient_text, master_data, self.settings)
        result.ingredient_raw = ingredient_text
        # Unresolved text is kept as typed; this also covers "Filler <anything>"
        result.ingredient = resolution.name or ingredient_text
        result.statuses.ingredient = resolution.status
        result.suggestions.ingredients = list(resolution.suggestions)

    def _finish(self, result: ParsedIngredient) -> ParsedIngredient:
        if result.statuses.amount != AmountStatus.OK:
            result.amount = None
        result.tokens.sort(key=lambda token: token.start)
        result.confidence = compute_confidence(result.statuses)
        LINES_PARSED.labels(amount_status=result.statuses.amount.value).inc()
        return result

    def parse_ingredient_block(self, text: str, master_data: MasterData) -> List[ParsedIngredient]:
        """
        Parse a multi-ingredient block.

        Args:
            text: Ingredient block, one or more entries per line
            master_data: Vocabulary snapshot

        Returns:
            One parsed ingredient per segment, in block order
        """
        segments = split_ingredient_tuples(text)
        results = [self.parse_ingredient_line(segment.text, master_data) for segment in segments]
        logger.debug("ingredient_block_parsed", segments=len(segments))
        return results

    def get_parsing_statistics(self, results: List[ParsedIngredient]) -> Dict[str, Any]:
        """
        Get statistics about parsing results.

        Args:
            results: List of parsing results

        Returns:
            Statistics dictionary
        """
        if not results:
            return {"total": 0}

        total = len(results)
        valid = sum(1 for r in results if r.is_valid())

        def count_by(getter, statuses):
            return {status.value: sum(1 for r in results if getter(r) == status) for status in statuses}

        return {
            "total": total,
            "valid": valid,
            "success_rate": valid / total,
            "with_notes": sum(1 for r in results if r.notes),
            "amount_statuses": count_by(lambda r: r.statuses.amount, AmountStatus),
            "unit_statuses": count_by(lambda r: r.statuses.unit, MatchStatus),
            "ingredient_statuses": count_by(lambda r: r.statuses.ingredient, MatchStatus),
            "average_confidence": sum(r.confidence for r in results) / total,
            "high_confidence": sum(1 for r in results if r.confidence > 0.7),
            "medium_confidence": sum(1 for r in results if 0.3 <= r.confidence <= 0.7),
            "low_confidence": sum(1 for r in results if r.confidence < 0.3)
        }


_default_parser = IngredientParser()


def parse_ingredient_line(line: str, master_data: MasterData) -> ParsedIngredient:
    """Parse one segment with the default configuration."""
    return _default_parser.parse_ingredient_line(line, master_data)


def parse_ingredient_block(text: str, master_data: MasterData) -> List[ParsedIngredient]:
    """Split a block into segments and parse each one."""
    return _default_parser.parse_ingredient_block(text, master_data)


def main():
    """Example usage of ingredient parser."""
    configure_logging()

    master_data = build_master_data([
        {"Cocktail": "Mojito", "Rezeptur": "4 cl Rum, 2 cl Limettensaft, - handvoll Minze, Filler Soda"},
    ])
    parser = IngredientParser()

    example_lines = [
        "2 cl Bacardi",
        "1 Dash Angostora",
        "50% Filler maracuja",
        "- handvoll Minze",
        "1-2 TL Zuckersirup",
        "½ EL Limettensaft (frisch)",
        "1 Bar spoon Zucker",
    ]

    print("Ingredient Parser")
    print("================")

    results = []
    for line in example_lines:
        result = parser.parse_ingredient_line(line, master_data)
        results.append(result)
        print(f"\nInput: {line}")
        print(f"  Amount: {result.amount} ({result.statuses.amount.value})")
        print(f"  Unit: {result.unit} ({result.statuses.unit.value})")
        print(f"  Ingredient: {result.ingredient} ({result.statuses.ingredient.value})")
        print(f"  Notes: {result.notes}")
        print(f"  Confidence: {result.confidence:.2f}")

    stats = parser.get_parsing_statistics(results)

    print(f"\nParsing Statistics:")
    print(f"  Total lines: {stats['total']}")
    print(f"  Success rate: {stats['success_rate']:.1%}")
    print(f"  Average confidence: {stats['average_confidence']:.2f}")


if __name__ == "__main__":
    main()
