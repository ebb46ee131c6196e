import json
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from anndata_ai.domain.enums import InterpretationStrategy
from anndata_ai.domain.interpreter import (
    find_balanced_object,
    interpret,
    normalize_key,
    parse_full_json,
    parse_key_value_lines,
)


class InterpretTests(unittest.TestCase):
    def test_flat_object_round_trips(self) -> None:
        samples = [
            {"recommended_crops": ["Rice", "Wheat"]},
            {"crop": "Maize", "yield": 5.5, "irrigated": True, "notes": None},
            {"a": 1, "b": "two", "c": [1, 2, 3], "d": "x: y"},
            {},
        ]
        for sample in samples:
            with self.subTest(sample=sample):
                result = interpret(json.dumps(sample))
                self.assertTrue(result.structured)
                self.assertEqual(result.data, sample)

    def test_plain_prose_stays_unchanged(self) -> None:
        raw = "Rice and wheat both suit this soil. Irrigate twice a week."
        result = interpret(raw)
        self.assertFalse(result.structured)
        self.assertEqual(result.strategy, InterpretationStrategy.RAW_TEXT)
        self.assertIsNone(result.data)
        self.assertEqual(result.text, raw)

    def test_line_heuristic(self) -> None:
        result = interpret("Confidence: High\nYield: 5 tons")
        self.assertEqual(result.strategy, InterpretationStrategy.KEY_VALUE)
        self.assertEqual(result.data, {"confidence": "High", "yield": "5 tons"})

    def test_duplicate_key_keeps_last_value(self) -> None:
        result = interpret("Crop: Rice\nCrop: Wheat")
        self.assertEqual(result.data, {"crop": "Wheat"})

    def test_embedded_object_wins_over_lines(self) -> None:
        raw = 'Analysis: done\nHere is the result {"crop": "Rice"} thanks'
        result = interpret(raw)
        self.assertEqual(result.strategy, InterpretationStrategy.EMBEDDED_JSON)
        self.assertEqual(result.data, {"crop": "Rice"})
        self.assertEqual(result.text, raw)

    def test_braces_inside_strings_do_not_end_object(self) -> None:
        raw = 'prefix {"note": "use {brackets} and \\"quotes\\"", "n": 1} suffix'
        result = interpret(raw)
        self.assertEqual(
            result.data, {"note": 'use {brackets} and "quotes"', "n": 1}
        )

    def test_invalid_embedded_object_falls_back_to_lines(self) -> None:
        result = interpret("{not json}\nCrop: Rice")
        self.assertEqual(result.strategy, InterpretationStrategy.KEY_VALUE)
        self.assertEqual(result.data, {"crop": "Rice"})

    def test_top_level_array_is_full_json(self) -> None:
        result = interpret(' [1, 2, 3] ')
        self.assertEqual(result.strategy, InterpretationStrategy.FULL_JSON)
        self.assertEqual(result.data, [1, 2, 3])

    def test_scalar_and_empty_completions_are_raw(self) -> None:
        for raw in ("42", "", "   "):
            with self.subTest(raw=raw):
                result = interpret(raw)
                self.assertFalse(result.structured)
                self.assertEqual(result.text, raw)

    def test_none_is_treated_as_empty(self) -> None:
        result = interpret(None)
        self.assertFalse(result.structured)
        self.assertEqual(result.text, "")


class InterpreterStageTests(unittest.TestCase):
    def test_find_balanced_object_handles_nesting(self) -> None:
        text = 'x {"a": {"b": 1}} y {"c": 2}'
        self.assertEqual(find_balanced_object(text), '{"a": {"b": 1}}')

    def test_find_balanced_object_unbalanced(self) -> None:
        self.assertIsNone(find_balanced_object('{"a": 1'))
        self.assertIsNone(find_balanced_object("no braces"))

    def test_parse_full_json_rejects_scalars(self) -> None:
        self.assertIsNone(parse_full_json("true"))
        self.assertEqual(parse_full_json('{"a": 1}'), {"a": 1})

    def test_normalize_key(self) -> None:
        self.assertEqual(normalize_key("  Expected   Yield "), "expected_yield")

    def test_key_value_lines_split_on_first_colon(self) -> None:
        parsed = parse_key_value_lines("Sowing Time: 10:30 am\n: orphan\nno colon")
        self.assertEqual(parsed, {"sowing_time": "10:30 am"})

    def test_key_value_lines_without_pairs(self) -> None:
        self.assertIsNone(parse_key_value_lines("nothing here"))


if __name__ == "__main__":
    unittest.main()
