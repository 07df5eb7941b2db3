#!/usr/bin/env python3
"""
Master data for ingredient resolution.
Merges the curated unit/ingredient vocabulary with ingredients mined from
existing recipes, indexes canonical names and aliases, and resolves raw
tokens against the indices with a fuzzy fallback.
"""

import hashlib
import json
import re
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import structlog
import yaml

from error_handling import VocabularyError, log_and_raise
from fuzzy_matcher import suggest
from ingredient_segmenter import split_ingredient_tuples
from monitoring_logging import (
    MASTER_DATA_BUILD_DURATION, MASTER_DATA_CACHE_OPERATIONS, MASTER_DATA_RECORDS
)
from parser_config import ParserConfig, config
from text_normalizer import normalize

logger = structlog.get_logger(__name__)


class MatchStatus(str, Enum):
    """Resolution status of a unit or ingredient."""
    OK = "ok"
    FUZZY = "fuzzy"
    NEW = "new"
    MISSING = "missing"


@dataclass(frozen=True)
class MasterRecord:
    """Canonical unit or ingredient with its aliases."""
    name: str
    aliases: Tuple[str, ...] = ()
    popularity: Optional[int] = None


@dataclass(frozen=True)
class MasterData:
    """Immutable vocabulary snapshot used by one or more parse calls."""
    units: Tuple[MasterRecord, ...]
    ingredients: Tuple[MasterRecord, ...]
    unit_index: Mapping[str, MasterRecord]
    ingredient_index: Mapping[str, MasterRecord]
    unit_values: Tuple[str, ...]
    ingredient_values: Tuple[str, ...]


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a raw token against master data."""
    name: Optional[str]
    status: MatchStatus
    suggestions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Recipe:
    """Corpus entry exposing its free-text ingredient block."""
    name: str
    ingredients: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Recipe":
        """Build from a record using either English or CSV column names."""
        name = data.get("name", data.get("Cocktail")) or ""
        ingredients = data.get("ingredients", data.get("Rezeptur")) or ""
        return cls(name=str(name), ingredients=str(ingredients))


RecipeLike = Union[Recipe, Mapping[str, Any]]


BASE_UNITS: Tuple[MasterRecord, ...] = (
    MasterRecord("cl", ("zentiliter", "centiliter", "cL", "cl.")),
    MasterRecord("ml", ("milliliter", "millilitre", "mL", "ml.")),
    MasterRecord("TL", ("teelöffel", "teeloeffel", "teaspoon", "tsp")),
    MasterRecord("EL", ("esslöffel", "essloeffel", "tablespoon", "tbsp")),
    MasterRecord("Dash", ("dash", "spritzer", "dashs")),
    MasterRecord("Prise", ("prise", "pinch")),
    MasterRecord("Stück", ("stück", "stücke", "piece", "pieces", "stk", "stk.")),
    MasterRecord("Scheibe", ("scheibe", "scheiben", "slice", "slices")),
    MasterRecord("handvoll", ("handvoll", "hand voll", "handfull")),
    MasterRecord("Barlöffel", ("barlöffel", "bar loeffel", "bar spoon", "barspoon")),
    MasterRecord("Filler", ("auffüllen", "top up", "fill", "filler")),
    MasterRecord("%", ("%", "prozent", "percent")),
)

BASE_INGREDIENTS: Tuple[MasterRecord, ...] = (
    MasterRecord("Rum", ("weisser rum", "brauner rum")),
    MasterRecord("Bacardi"),
    MasterRecord("Wodka", ("vodka",)),
    MasterRecord("Gin"),
    MasterRecord("Tequila"),
    MasterRecord("Triple Sec", ("cointreau",)),
    MasterRecord("Limettensaft", ("limettensaft frisch", "lime juice")),
    MasterRecord("Zitronensaft", ("lemon juice", "zitronensaft frisch")),
    MasterRecord("Zuckersirup", ("zucker sirup", "sirup")),
    MasterRecord("Angostura Bitters", ("angostura", "angostora")),
    MasterRecord("Maracuja", ("passion fruit", "maracuja nectar")),
    MasterRecord("Minze", ("frische minze", "mint")),
    MasterRecord("Eiswürfel", ("eis", "ice")),
    MasterRecord("Espresso"),
)

# Leading "amount unit " of a recipe line, e.g. "2 cl ", "1,5 TL ", "50% Filler "
AMOUNT_UNIT_PREFIX = re.compile(
    r'^(?:\d+(?:[.,/]\d+)?(?:\s*-\s*\d+)?\s*%?|[½¼¾⅓⅔⅛⅜⅝⅞]|-)\s*[^\W\d_]+\.?\s+'
)
NOTES_PATTERN = re.compile(r'\(.*?\)')


# Vocabulary loading

def _record_from_entry(entry: Any, section: str, source: str) -> MasterRecord:
    if isinstance(entry, str):
        name, aliases = entry, []
    elif isinstance(entry, dict):
        name = entry.get("name")
        aliases = entry.get("aliases") or []
    else:
        log_and_raise(VocabularyError(
            f"Invalid {section} entry: {entry!r}", source=source
        ))

    if not isinstance(name, str) or not name.strip():
        log_and_raise(VocabularyError(
            f"{section} entry without a name", source=source, details={"entry": entry}
        ))
    if not isinstance(aliases, list) or not all(isinstance(alias, str) for alias in aliases):
        log_and_raise(VocabularyError(
            f"Aliases of '{name}' must be a list of strings", source=source
        ))

    return MasterRecord(name.strip(), tuple(alias.strip() for alias in aliases if alias.strip()))


def load_vocabulary(path: Union[str, Path]) -> Tuple[Tuple[MasterRecord, ...], Tuple[MasterRecord, ...]]:
    """
    Load a base vocabulary from YAML.

    The file holds ``units`` and ``ingredients`` lists whose entries are
    either plain names or ``{name, aliases}`` mappings. A missing section
    keeps the built-in default for it.

    Args:
        path: YAML vocabulary file

    Returns:
        Tuple of (units, ingredients)
    """
    source = str(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        log_and_raise(VocabularyError(f"Cannot read vocabulary {source}: {e}", source=source))
    except yaml.YAMLError as e:
        log_and_raise(VocabularyError(f"Cannot parse vocabulary {source}: {e}", source=source))

    if not isinstance(data, dict):
        log_and_raise(VocabularyError("Vocabulary must be a mapping", source=source))

    sections = {}
    for section, default in (("units", BASE_UNITS), ("ingredients", BASE_INGREDIENTS)):
        entries = data.get(section)
        if entries is None:
            sections[section] = default
            continue
        if not isinstance(entries, list):
            log_and_raise(VocabularyError(f"'{section}' must be a list", source=source))
        sections[section] = tuple(_record_from_entry(entry, section, source) for entry in entries)

    logger.info("vocabulary_loaded", source=source,
                units=len(sections["units"]), ingredients=len(sections["ingredients"]))
    return sections["units"], sections["ingredients"]


# Building

def _coerce_recipe(recipe: RecipeLike) -> Recipe:
    if isinstance(recipe, Recipe):
        return recipe
    return Recipe.from_dict(recipe)


def corpus_fingerprint(recipes: Sequence[Recipe]) -> str:
    """Stable key over the names and ingredient blocks of a corpus."""
    payload = json.dumps([[recipe.name, recipe.ingredients] for recipe in recipes],
                         ensure_ascii=False)
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


def mine_ingredient_name(line: str) -> str:
    """Strip notes and a leading amount/unit prefix from a recipe line."""
    text = NOTES_PATTERN.sub('', line).strip()
    return AMOUNT_UNIT_PREFIX.sub('', text, count=1).strip()


def extract_dynamic_ingredients(recipes: Iterable[Recipe]) -> List[MasterRecord]:
    """
    Mine ingredient names from existing recipes.

    Args:
        recipes: Recipe corpus

    Returns:
        One record per distinct name, popularity = number of occurrences
    """
    counts: Dict[str, int] = {}
    for recipe in recipes:
        for segment in split_ingredient_tuples(recipe.ingredients):
            name = mine_ingredient_name(segment.text)
            if name:
                counts[name] = counts.get(name, 0) + 1

    return [MasterRecord(name, (), popularity) for name, popularity in counts.items()]


def merge_records(base: Iterable[MasterRecord], dynamic: Iterable[MasterRecord]) -> List[MasterRecord]:
    """
    Merge dynamic records into the base list.

    Records sharing a canonical name union their aliases and keep the
    higher popularity; unseen records are appended. The result keeps
    merge order.
    """
    merged: Dict[str, MasterRecord] = {}
    for record in list(base) + list(dynamic):
        existing = merged.get(record.name)
        if existing is None:
            merged[record.name] = record
            continue

        aliases = list(existing.aliases)
        aliases.extend(alias for alias in record.aliases if alias not in aliases)
        if existing.popularity is None and record.popularity is None:
            popularity = None
        else:
            popularity = max(existing.popularity or 0, record.popularity or 0)
        merged[record.name] = MasterRecord(existing.name, tuple(aliases), popularity)

    return list(merged.values())


def build_index(records: Iterable[MasterRecord]) -> Mapping[str, MasterRecord]:
    """Map normalized names and aliases to records; later records win collisions."""
    index: Dict[str, MasterRecord] = {}
    for record in records:
        index[normalize(record.name)] = record
        for alias in record.aliases:
            key = normalize(alias)
            if key:
                index[key] = record
    return MappingProxyType(index)


def _sorted_records(records: Iterable[MasterRecord]) -> Tuple[MasterRecord, ...]:
    return tuple(sorted(records, key=lambda record: (normalize(record.name), record.name)))


def build_master_data(recipes: Iterable[RecipeLike],
                      base_units: Optional[Sequence[MasterRecord]] = None,
                      base_ingredients: Optional[Sequence[MasterRecord]] = None) -> MasterData:
    """
    Build a master data snapshot for a recipe corpus.

    Args:
        recipes: Existing recipes (``Recipe`` or mappings with
            ``Cocktail``/``Rezeptur`` or ``name``/``ingredients``)
        base_units: Curated units, defaults to the built-in list
        base_ingredients: Curated ingredients, defaults to the built-in list

    Returns:
        Immutable master data
    """
    start_time = time.perf_counter()
    corpus = [_coerce_recipe(recipe) for recipe in recipes]

    dynamic = extract_dynamic_ingredients(corpus)
    unit_records = merge_records(BASE_UNITS if base_units is None else base_units, [])
    ingredient_records = merge_records(
        BASE_INGREDIENTS if base_ingredients is None else base_ingredients, dynamic
    )

    units = _sorted_records(unit_records)
    ingredients = _sorted_records(ingredient_records)
    master = MasterData(
        units=units,
        ingredients=ingredients,
        unit_index=build_index(unit_records),
        ingredient_index=build_index(ingredient_records),
        unit_values=tuple(record.name for record in units),
        ingredient_values=tuple(record.name for record in ingredients),
    )

    duration = time.perf_counter() - start_time
    MASTER_DATA_BUILD_DURATION.observe(duration)
    MASTER_DATA_RECORDS.labels(kind="unit").inc(len(units))
    MASTER_DATA_RECORDS.labels(kind="ingredient").inc(len(ingredients))
    logger.info("master_data_built", recipes=len(corpus), units=len(units),
                ingredients=len(ingredients), mined=len(dynamic),
                duration_ms=round(duration * 1000, 2))
    return master


# Resolution

def _resolve(cleaned: str, index: Mapping[str, MasterRecord], values: Sequence[str],
             min_score: float, ok_score: float, limit: int) -> Resolution:
    if not cleaned.strip():
        return Resolution(None, MatchStatus.MISSING)

    direct = index.get(normalize(cleaned))
    if direct is not None:
        return Resolution(direct.name, MatchStatus.OK)

    alternatives = suggest(cleaned, values, limit=limit, min_score=min_score)
    if alternatives:
        best = alternatives[0]
        status = MatchStatus.OK if best.score >= ok_score else MatchStatus.FUZZY
        return Resolution(best.value, status, tuple(entry.value for entry in alternatives))

    return Resolution(None, MatchStatus.NEW, tuple(values[:limit]))


def resolve_unit(raw: str, master_data: MasterData,
                 settings: Optional[ParserConfig] = None) -> Resolution:
    """
    Resolve a raw unit token.

    Args:
        raw: Unit text as typed, trailing dots/commas are ignored
        master_data: Vocabulary snapshot
        settings: Thresholds, defaults to the module configuration

    Returns:
        Resolution with canonical name, status and suggestions
    """
    settings = settings or config
    cleaned = re.sub(r'[.,]+$', '', raw or '')
    return _resolve(cleaned, master_data.unit_index, master_data.unit_values,
                    settings.UNIT_MIN_SCORE, settings.UNIT_OK_SCORE, settings.SUGGESTION_LIMIT)


def resolve_ingredient(raw: str, master_data: MasterData,
                       settings: Optional[ParserConfig] = None) -> Resolution:
    """Resolve a raw ingredient name; same algorithm as ``resolve_unit``."""
    settings = settings or config
    cleaned = (raw or '').strip()
    return _resolve(cleaned, master_data.ingredient_index, master_data.ingredient_values,
                    settings.INGREDIENT_MIN_SCORE, settings.INGREDIENT_OK_SCORE,
                    settings.SUGGESTION_LIMIT)


# Caching

@dataclass
class CacheStats:
    """Cache statistics."""
    hit_count: int = 0
    miss_count: int = 0

    @property
    def hit_ratio(self) -> float:
        total = self.hit_count + self.miss_count
        return self.hit_count / total if total > 0 else 0.0


class MasterDataCache:
    """
    Caller-owned cache of the master data for the current corpus.

    Holds one (key, snapshot) entry. A rebuild replaces the entry in a
    single assignment, so readers see either the old or the new snapshot.
    """

    def __init__(self, base_units: Optional[Sequence[MasterRecord]] = None,
                 base_ingredients: Optional[Sequence[MasterRecord]] = None,
                 vocabulary_path: Optional[Union[str, Path]] = None):
        vocabulary_path = vocabulary_path or config.VOCABULARY_PATH
        if vocabulary_path and (base_units is None or base_ingredients is None):
            loaded_units, loaded_ingredients = load_vocabulary(vocabulary_path)
            base_units = loaded_units if base_units is None else base_units
            base_ingredients = loaded_ingredients if base_ingredients is None else base_ingredients

        self.base_units = base_units
        self.base_ingredients = base_ingredients
        self.stats = CacheStats()
        self._entry: Optional[Tuple[str, MasterData]] = None

    @property
    def key(self) -> Optional[str]:
        entry = self._entry
        return entry[0] if entry else None

    def get_or_build(self, recipes: Iterable[RecipeLike]) -> MasterData:
        """
        Return the snapshot for this corpus, building it on a key change.

        Args:
            recipes: Current recipe corpus

        Returns:
            Master data snapshot
        """
        corpus = [_coerce_recipe(recipe) for recipe in recipes]
        key = corpus_fingerprint(corpus)

        entry = self._entry
        if entry is not None and entry[0] == key:
            self.stats.hit_count += 1
            MASTER_DATA_CACHE_OPERATIONS.labels(result="hit").inc()
            return entry[1]

        self.stats.miss_count += 1
        MASTER_DATA_CACHE_OPERATIONS.labels(result="miss").inc()
        master = build_master_data(corpus, self.base_units, self.base_ingredients)
        self._entry = (key, master)
        return master

    def invalidate(self):
        """Drop the cached snapshot."""
        self._entry = None
        logger.debug("master_data_cache_invalidated")
