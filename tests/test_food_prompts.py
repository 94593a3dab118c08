# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest

from nutricoach.food.models import AnalysisContext, MacroSet
from nutricoach.food.prompts import (
    CORRECTIVE_DIRECTIVE,
    build_image_analysis_prompt,
    build_regeneration_prompt,
    build_text_analysis_prompt,
    remaining_macros,
)


class TestPrompts(unittest.TestCase):
    def test_remaining_macros_never_negative(self) -> None:
        ctx = AnalysisContext(
            total_macros=MacroSet(calories=2000, protein=100, carbs=250, fat=70),
            consumed_macros=MacroSet(calories=2100, protein=40, carbs=250, fat=10),
        )
        left = remaining_macros(ctx)
        self.assertEqual((left.calories, left.protein, left.carbs, left.fat), (0.0, 60.0, 0.0, 60.0))

    def test_zero_goals_do_not_divide(self) -> None:
        ctx = AnalysisContext(user_info="new user", consumed_macros=MacroSet(calories=300))
        prompt = build_image_analysis_prompt(ctx)
        self.assertIn("0% of daily goal", prompt)
        self.assertIn('"suggestion"', prompt)

    def test_suggestion_schema_only_with_context(self) -> None:
        self.assertNotIn('"suggestion"', build_image_analysis_prompt())
        self.assertNotIn('"suggestion"', build_text_analysis_prompt("apple", "1 medium"))
        self.assertIn("Focus Mode", build_image_analysis_prompt())

    def test_regeneration_prompt(self) -> None:
        self.assertEqual(build_regeneration_prompt("BASE"), "BASE" + CORRECTIVE_DIRECTIVE)
        prompt = build_regeneration_prompt("BASE", food_name="apple", quantity="1 medium")
        self.assertTrue(prompt.endswith('The food to analyze is "apple" in the quantity "1 medium".'))


if __name__ == "__main__":
    unittest.main()
