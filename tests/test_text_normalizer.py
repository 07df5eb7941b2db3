#!/usr/bin/env python3

import sys
import unittest
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from text_normalizer import normalize


class NormalizeTests(unittest.TestCase):
    def test_strips_diacritics_and_case(self) -> None:
        self.assertEqual(normalize("  Angostúra   BITTERS "), "angostura bitters")
        self.assertEqual(normalize("Stück"), "stuck")
        self.assertEqual(normalize("Eiswürfel"), "eiswurfel")

    def test_collapses_any_whitespace(self) -> None:
        self.assertEqual(normalize("bar\t\tspoon\n"), "bar spoon")

    def test_empty_input(self) -> None:
        self.assertEqual(normalize(""), "")
        self.assertEqual(normalize("   "), "")

    def test_idempotent(self) -> None:
        samples = [
            "Crème de Cassis", "  ÉSPRESSO  ", "İstanbul", "Straße", "ΟΔΟΣ",
            "1,5 cl Sirup", "½ EL", " nbsp space", "",
        ]
        for sample in samples:
            once = normalize(sample)
            self.assertEqual(normalize(once), once, msg=sample)


if __name__ == "__main__":
    unittest.main()
