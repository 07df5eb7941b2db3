#!/usr/bin/env python3

import shutil
import sys
import tempfile
import unittest
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from error_handling import VocabularyError
from master_data import (
    MasterDataCache, MasterRecord, MatchStatus, Recipe, build_index, build_master_data,
    corpus_fingerprint, extract_dynamic_ingredients, load_vocabulary, merge_records,
    mine_ingredient_name, resolve_ingredient, resolve_unit
)

CORPUS = [
    {"Cocktail": "Test", "Rezeptur": "2 cl Bacardi, 1 Dash Angostura, Filler Maracuja, - handvoll Minze"},
]


class ResolveTests(unittest.TestCase):
    def setUp(self) -> None:
        self.master = build_master_data([])

    def test_unit_direct_and_alias(self) -> None:
        resolution = resolve_unit("cl.", self.master)
        self.assertEqual((resolution.name, resolution.status), ("cl", MatchStatus.OK))
        self.assertEqual(resolution.suggestions, ())
        self.assertEqual(resolve_unit("Zentiliter", self.master).name, "cl")
        self.assertEqual(resolve_unit("bar spoon", self.master).name, "Barlöffel")

    def test_unit_missing(self) -> None:
        self.assertEqual(resolve_unit("", self.master).status, MatchStatus.MISSING)
        self.assertEqual(resolve_unit("..", self.master).status, MatchStatus.MISSING)

    def test_unit_fuzzy(self) -> None:
        resolution = resolve_unit("Dashh", self.master)
        self.assertEqual(resolution.name, "Dash")
        self.assertEqual(resolution.status, MatchStatus.FUZZY)
        self.assertIn("Dash", resolution.suggestions)

    def test_unit_close_fuzzy_match_is_ok(self) -> None:
        resolution = resolve_unit("Scheib", self.master)
        self.assertEqual((resolution.name, resolution.status), ("Scheibe", MatchStatus.OK))

    def test_unit_new(self) -> None:
        resolution = resolve_unit("xyz", self.master)
        self.assertIsNone(resolution.name)
        self.assertEqual(resolution.status, MatchStatus.NEW)
        self.assertEqual(resolution.suggestions, self.master.unit_values[:5])

    def test_ingredient_alias(self) -> None:
        resolution = resolve_ingredient("Angostora", self.master)
        self.assertEqual((resolution.name, resolution.status), ("Angostura Bitters", MatchStatus.OK))

    def test_ingredient_fuzzy_thresholds(self) -> None:
        close = resolve_ingredient("Tequilla", self.master)
        self.assertEqual((close.name, close.status), ("Tequila", MatchStatus.OK))
        loose = resolve_ingredient("Gim", self.master)
        self.assertEqual((loose.name, loose.status), ("Gin", MatchStatus.FUZZY))

    def test_ingredient_new_and_missing(self) -> None:
        new = resolve_ingredient("Blue Curacao", self.master)
        self.assertEqual(new.status, MatchStatus.NEW)
        self.assertEqual(new.suggestions, self.master.ingredient_values[:5])
        self.assertEqual(resolve_ingredient("   ", self.master).status, MatchStatus.MISSING)


class BuildTests(unittest.TestCase):
    def test_mine_ingredient_name(self) -> None:
        self.assertEqual(mine_ingredient_name("1,5 TL Zuckersirup (selbstgemacht)"), "Zuckersirup")
        self.assertEqual(mine_ingredient_name("50% Filler Maracuja"), "Maracuja")
        self.assertEqual(mine_ingredient_name("- handvoll Minze"), "Minze")
        self.assertEqual(mine_ingredient_name("Filler Soda"), "Filler Soda")
        self.assertEqual(mine_ingredient_name("2 Limetten"), "2 Limetten")

    def test_extract_counts_popularity(self) -> None:
        records = extract_dynamic_ingredients([
            Recipe("A", "2 cl Bacardi, 1 Dash Angostura"),
            Recipe("B", "4 cl Bacardi (weiss)"),
        ])
        popularity = {record.name: record.popularity for record in records}
        self.assertEqual(popularity, {"Bacardi": 2, "Angostura": 1})

    def test_merge_unions_aliases_and_keeps_max_popularity(self) -> None:
        merged = merge_records(
            [MasterRecord("Rum", ("a",), 5)],
            [MasterRecord("Rum", ("b", "a"), 3), MasterRecord("Gin", (), 1)]
        )
        self.assertEqual(merged, [MasterRecord("Rum", ("a", "b"), 5), MasterRecord("Gin", (), 1)])

    def test_alias_collision_last_record_wins(self) -> None:
        index = build_index([MasterRecord("A", ("x",)), MasterRecord("B", ("x",))])
        self.assertEqual(index["x"].name, "B")

    def test_build_merges_corpus(self) -> None:
        master = build_master_data(CORPUS)
        bacardi = next(record for record in master.ingredients if record.name == "Bacardi")
        self.assertEqual(bacardi.popularity, 1)
        self.assertIn("Filler Maracuja", master.ingredient_values)
        self.assertEqual(master.ingredient_index["minze"].name, "Minze")
        self.assertEqual(list(master.unit_values[:5]), ["%", "Barlöffel", "cl", "Dash", "EL"])

    def test_master_data_is_read_only(self) -> None:
        master = build_master_data([])
        with self.assertRaises(TypeError):
            master.unit_index["foo"] = master.units[0]

    def test_recipe_from_dict(self) -> None:
        self.assertEqual(Recipe.from_dict({"Cocktail": "Mojito", "Rezeptur": "4 cl Rum"}),
                         Recipe("Mojito", "4 cl Rum"))
        self.assertEqual(Recipe.from_dict({"name": "Negroni"}), Recipe("Negroni", ""))


class CacheTests(unittest.TestCase):
    def test_same_corpus_is_served_from_cache(self) -> None:
        cache = MasterDataCache()
        first = cache.get_or_build(CORPUS)
        second = cache.get_or_build([Recipe.from_dict(CORPUS[0])])
        self.assertIs(first, second)
        self.assertEqual((cache.stats.hit_count, cache.stats.miss_count), (1, 1))
        self.assertEqual(cache.stats.hit_ratio, 0.5)

    def test_changed_corpus_rebuilds(self) -> None:
        cache = MasterDataCache()
        first = cache.get_or_build(CORPUS)
        key = cache.key
        second = cache.get_or_build(CORPUS + [{"Cocktail": "Gimlet", "Rezeptur": "5 cl Gin"}])
        self.assertIsNot(first, second)
        self.assertNotEqual(cache.key, key)

    def test_invalidate(self) -> None:
        cache = MasterDataCache()
        first = cache.get_or_build(CORPUS)
        cache.invalidate()
        self.assertIsNone(cache.key)
        self.assertIsNot(cache.get_or_build(CORPUS), first)

    def test_fingerprint_covers_ingredient_text(self) -> None:
        self.assertNotEqual(
            corpus_fingerprint([Recipe("A", "2 cl Rum")]),
            corpus_fingerprint([Recipe("A", "4 cl Rum")])
        )


class VocabularyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self) -> None:
        shutil.rmtree(self.temp_dir)

    def write(self, content: str) -> Path:
        path = self.temp_dir / "vocabulary.yaml"
        path.write_text(content, encoding="utf-8")
        return path

    def test_load_vocabulary(self) -> None:
        path = self.write(
            "units:\n"
            "  - name: oz\n"
            "    aliases: [ounce, ounces]\n"
            "  - cl\n"
        )
        units, ingredients = load_vocabulary(path)
        self.assertEqual(units, (MasterRecord("oz", ("ounce", "ounces")), MasterRecord("cl")))
        self.assertTrue(any(record.name == "Bacardi" for record in ingredients))

    def test_cache_uses_vocabulary_file(self) -> None:
        path = self.write("units:\n  - name: oz\n    aliases: [ounce]\n")
        master = MasterDataCache(vocabulary_path=path).get_or_build([])
        self.assertEqual(master.unit_values, ("oz",))
        self.assertEqual(resolve_unit("ounce", master).name, "oz")

    def test_malformed_vocabulary(self) -> None:
        for content in ("units: cl\n", "units:\n  - aliases: [x]\n", "- cl\n", "units: [\n"):
            with self.assertRaises(VocabularyError, msg=content):
                load_vocabulary(self.write(content))

    def test_missing_vocabulary_file(self) -> None:
        with self.assertRaises(VocabularyError):
            load_vocabulary(self.temp_dir / "absent.yaml")


if __name__ == "__main__":
    unittest.main()
