#!/usr/bin/env python3

import sys
import unittest
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from ingredient_segmenter import IngredientSegment, is_decimal_comma, split_ingredient_tuples


def texts(block):
    return [segment.text for segment in split_ingredient_tuples(block)]


class SegmenterTests(unittest.TestCase):
    def test_decimal_comma_is_kept(self) -> None:
        self.assertEqual(
            split_ingredient_tuples("1,5 cl Sirup"),
            [IngredientSegment("1,5 cl Sirup", 0, 12)]
        )

    def test_comma_separates_entries(self) -> None:
        self.assertEqual(
            split_ingredient_tuples("1,5 cl Sirup, 2 cl Rum"),
            [IngredientSegment("1,5 cl Sirup", 0, 12), IngredientSegment("2 cl Rum", 14, 22)]
        )

    def test_comma_followed_by_space_is_a_separator(self) -> None:
        self.assertEqual(texts("1, 5"), ["1", "5"])

    def test_commas_inside_parentheses(self) -> None:
        self.assertEqual(
            texts("2 cl Rum (weiss, kubanisch), 1 cl Limette"),
            ["2 cl Rum (weiss, kubanisch)", "1 cl Limette"]
        )

    def test_line_breaks_always_split(self) -> None:
        self.assertEqual(texts("4 cl Gin\r\n2 cl Tonic\n\nEis"), ["4 cl Gin", "2 cl Tonic", "Eis"])
        self.assertEqual(texts("Rum (weiss\nGin, Tonic"), ["Rum (weiss", "Gin", "Tonic"])

    def test_unclosed_parenthesis_keeps_commas(self) -> None:
        self.assertEqual(texts("Rum (weiss, Gin"), ["Rum (weiss, Gin"])

    def test_empty_segments_are_dropped(self) -> None:
        self.assertEqual(split_ingredient_tuples(""), [])
        self.assertEqual(split_ingredient_tuples("  , ,\n  "), [])

    def test_offsets_point_into_block(self) -> None:
        block = "  2 cl Bacardi ,1 Dash Angostura,\n - handvoll Minze  "
        for segment in split_ingredient_tuples(block):
            self.assertEqual(block[segment.start:segment.end], segment.text)
            self.assertEqual(segment.text, segment.text.strip())

    def test_is_decimal_comma(self) -> None:
        self.assertTrue(is_decimal_comma("1,5", 1))
        self.assertFalse(is_decimal_comma("1, 5", 1))
        self.assertFalse(is_decimal_comma(",5", 0))
        self.assertFalse(is_decimal_comma("1,", 1))


if __name__ == "__main__":
    unittest.main()
