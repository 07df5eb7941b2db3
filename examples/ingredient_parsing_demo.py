#!/usr/bin/env python3
"""
Cocktail Ingredient Parsing Demo
Demonstrates the ingredient line parser end to end:
- Master data built from an existing recipe corpus and cached by content
- Line parsing with statuses, confidence and suggestions
- Block parsing of a full "Rezeptur" field
- JSON output of the parse results
"""

import sys
import json
from pathlib import Path

# Add src to path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from ingredient_parser import IngredientParser
from master_data import MasterDataCache
from monitoring_logging import configure_logging


def main():
    """Ingredient parsing demonstration."""

    configure_logging()

    print("🍸 Cocktail Ingredient Parsing Demo")
    print("=" * 60)

    # Existing recipes, as exported from the recipe table
    corpus = [
        {"Cocktail": "Mojito", "Rezeptur": "4 cl Rum, 2 cl Limettensaft, 2 TL Zuckersirup\n- handvoll Minze, Filler Soda"},
        {"Cocktail": "Daiquiri", "Rezeptur": "6 cl Bacardi, 3 cl Limettensaft, 1,5 cl Zuckersirup"},
        {"Cocktail": "Hurricane", "Rezeptur": "4 cl Rum (braun), 2 cl Maracuja, 50% Filler Orangensaft"},
    ]

    print("\n1. Building master data...")
    cache = MasterDataCache()
    master_data = cache.get_or_build(corpus)
    print(f"✅ {len(master_data.unit_values)} units, {len(master_data.ingredient_values)} ingredients")

    # An unchanged corpus is served from the cache
    cache.get_or_build(corpus)
    print(f"🗃️  Cache hit ratio: {cache.stats.hit_ratio:.0%}")

    print("\n2. Parsing single lines...")
    print("-" * 60)

    parser = IngredientParser()
    test_lines = [
        # Standard format
        "2 cl Bacardi",
        "1,5 cl Zuckersirup",

        # Percent filler idiom
        "50% Filler maracuja",

        # Placeholder dash and ranges
        "- handvoll Minze",
        "1-2 TL Zuckersirup",

        # Fractions and notes
        "½ EL Limettensaft (frisch)",
        "1 1/2 cl Rum (weiss) (kubanisch)",

        # Two-word units and connectors
        "1 Bar spoon Zuckersirup",
        "2 cl von Bacardi,",

        # Typos and unknown vocabulary
        "1 Dashh Angostora",
        "2 cl Blue Curacao",
        "1/0 cl Gin",
    ]

    results = []
    for i, line in enumerate(test_lines, 1):
        result = parser.parse_ingredient_line(line, master_data)
        results.append(result)

        print(f"\n{i:2d}. Original: {result.raw}")
        print(f"    Amount: {result.amount_text} ({result.statuses.amount.value})")
        print(f"    Unit: {result.unit} ({result.statuses.unit.value})")
        print(f"    Ingredient: {result.ingredient} ({result.statuses.ingredient.value})")
        if result.notes:
            print(f"    📝 Notes: {result.notes}")
        print(f"    Confidence: {result.confidence:.2f}")

        if result.statuses.unit.value in ("fuzzy", "new") and result.suggestions.units:
            print(f"    💡 Unit suggestions: {', '.join(result.suggestions.units[:3])}")
        if result.statuses.ingredient.value in ("fuzzy", "new") and result.suggestions.ingredients:
            print(f"    💡 Ingredient suggestions: {', '.join(result.suggestions.ingredients[:3])}")

    print("\n3. Parsing Statistics...")
    print("-" * 60)

    stats = parser.get_parsing_statistics(results)
    print(f"📊 Total lines: {stats['total']}")
    print(f"✅ With ingredient: {stats['success_rate']:.1%}")
    print(f"📈 Average confidence: {stats['average_confidence']:.2f}")
    print(f"   Amount statuses: {stats['amount_statuses']}")
    print(f"   Ingredient statuses: {stats['ingredient_statuses']}")

    print("\n4. Block Parsing and JSON Output...")
    print("-" * 60)

    block = corpus[0]["Rezeptur"]
    block_results = parser.parse_ingredient_block(block, master_data)
    json_output = [result.to_dict() for result in block_results]

    output_file = Path(__file__).parent / "parsed_ingredients.json"
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(json_output, f, indent=2, ensure_ascii=False)

    print(f"📄 {len(block_results)} segments saved to: {output_file}")
    print(json.dumps(json_output[0], indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
