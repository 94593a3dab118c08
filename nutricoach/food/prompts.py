# -*- coding: utf-8 -*-
"""Food — prompt builders for the analysis and validation model calls."""

from __future__ import annotations

from typing import Optional

from .models import AnalysisContext, MacroSet

CORRECTIVE_DIRECTIVE = (
    "\n\n## IMPORTANT: your previous answer could not be parsed\n"
    "- Every macro value must be a final number. Do NOT write arithmetic such as 100+50 or 2*3.5.\n"
    "- Return ONLY the JSON object: no text, markdown or code fences before or after it.\n"
    "- Put double quotes around every key and string value.\n"
    "- No trailing commas before } or ]."
)

_MACROS_SCHEMA = (
    '{\n'
    '        "calories": number,\n'
    '        "protein": number,\n'
    '        "carbs": number,\n'
    '        "fat": number\n'
    '      }'
)

_SUGGESTION_SCHEMA = (
    ',\n'
    '  "suggestion": {\n'
    '    "shouldEat": boolean,\n'
    '    "reason": "friendly, conversational advice tailored to their goals",\n'
    '    "recommendedQuantity": "portion that fits their remaining macros",\n'
    '    "alternatives": ["better options if this does not fit"],\n'
    '    "complementaryFoods": [\n'
    '      {\n'
    '        "name": "food that pairs well and fills macro gaps",\n'
    '        "quantity": "realistic serving size",\n'
    f'        "macros": {_MACROS_SCHEMA},\n'
    '        "reason": "why this addition makes sense"\n'
    '      }\n'
    '    ],\n'
    f'    "completeMealMacros": {_MACROS_SCHEMA}\n'
    '  }'
)


def _response_format(with_suggestion: bool) -> str:
    fmt = (
        "## Response Format (must be valid JSON)\n"
        "{\n"
        '  "foodItems": [\n'
        "    {\n"
        '      "name": "specific food name",\n'
        '      "quantity": "portion with units, e.g. \'1 medium banana\', \'150g grilled chicken\'",\n'
        f'      "macros": {_MACROS_SCHEMA}\n'
        "    }\n"
        "  ],\n"
        f'  "totalMacros": {_MACROS_SCHEMA}'
    )
    if with_suggestion:
        fmt += _SUGGESTION_SCHEMA
    return fmt + "\n}\n"


def _percent(consumed: float, goal: float) -> int:
    if goal <= 0:
        return 0
    return round(consumed / goal * 100)


def remaining_macros(context: AnalysisContext) -> MacroSet:
    goal, eaten = context.total_macros, context.consumed_macros
    return MacroSet(
        calories=max(0.0, goal.calories - eaten.calories),
        protein=max(0.0, goal.protein - eaten.protein),
        carbs=max(0.0, goal.carbs - eaten.carbs),
        fat=max(0.0, goal.fat - eaten.fat),
    )


def _context_section(context: AnalysisContext) -> str:
    goal, eaten = context.total_macros, context.consumed_macros
    left = remaining_macros(context)
    return (
        "\n## Personal Context\n"
        f"**User profile**: {context.user_info}\n\n"
        "**Today's progress so far:**\n"
        f"- Calories: {eaten.calories:g}/{goal.calories:g} ({_percent(eaten.calories, goal.calories)}% of daily goal)\n"
        f"- Protein: {eaten.protein:g}g/{goal.protein:g}g ({_percent(eaten.protein, goal.protein)}% of daily goal)\n"
        f"- Carbs: {eaten.carbs:g}g/{goal.carbs:g}g ({_percent(eaten.carbs, goal.carbs)}% of daily goal)\n"
        f"- Fat: {eaten.fat:g}g/{goal.fat:g}g ({_percent(eaten.fat, goal.fat)}% of daily goal)\n\n"
        "**What they still need today:**\n"
        f"- {left.calories:g} calories\n"
        f"- {left.protein:g}g protein\n"
        f"- {left.carbs:g}g carbs\n"
        f"- {left.fat:g}g fat\n\n"
        "## Coaching Instructions\n"
        "1. Assess whether this food fits the remaining macro budget; suggest a smaller portion if not.\n"
        "2. Speak like a knowledgeable friend, not a robot.\n"
        "3. Suggest 3-4 complementary foods that fill macro gaps and pair well.\n"
        "4. Give specific, actionable portion advice.\n"
        "5. Calculate complete meal macros including your suggested additions.\n"
    )


_RULES = (
    "\n## Critical Requirements\n"
    "- Use USDA nutritional values and realistic portions\n"
    "- Numbers only (no strings, no arithmetic) for all macro values\n"
    "- Return only valid, parseable JSON with no extra text\n"
)

_FOCUS_MODE = (
    "\n## Focus Mode\n"
    "No user context provided: concentrate on food identification and nutrition only. "
    "Skip recommendations and complementary foods.\n"
)


def build_image_analysis_prompt(context: Optional[AnalysisContext] = None) -> str:
    prompt = (
        "You're a personal nutrition coach helping someone track their food. "
        "Analyze this food image and identify every item with a precise portion.\n\n"
    )
    prompt += _response_format(with_suggestion=context is not None)
    prompt += _RULES
    prompt += _context_section(context) if context is not None else _FOCUS_MODE
    return prompt


def build_text_analysis_prompt(
    food_name: str,
    quantity: str,
    context: Optional[AnalysisContext] = None,
) -> str:
    prompt = (
        f'You\'re a personal nutrition coach. They\'ve told you about "{food_name}" '
        f'in the quantity "{quantity}". Give accurate nutritional info.\n\n'
        "## Food Details\n"
        f"- **Food**: {food_name}\n"
        f"- **Quantity**: {quantity}\n\n"
    )
    prompt += _response_format(with_suggestion=context is not None)
    prompt += _RULES
    prompt += "- If the quantity is vague, make a reasonable assumption\n"
    if context is not None:
        prompt += _context_section(context)
    return prompt


def build_food_validation_prompt() -> str:
    return (
        "You're a nutrition assistant. Look at this image and decide whether it shows food "
        "that can be eaten OR a nutrition label with nutritional information.\n\n"
        "## Response Format\n"
        "{\n"
        '  "containsFood": true/false,\n'
        '  "reason": "what you see in the image"\n'
        "}\n\n"
        "## What counts\n"
        "- Prepared meals, snacks, fruits, vegetables, beverages, desserts\n"
        "- Nutrition facts labels or packaging with visible nutritional data\n\n"
        "## What doesn't count\n"
        "- Empty plates, utensils, people, pets or other non-food objects\n"
        "- Raw ingredients that need cooking\n\n"
        "## CRITICAL RULES\n"
        "- Return ONLY valid JSON in the exact format above\n"
        "- Use boolean values (true/false), not strings\n"
    )


def build_regeneration_prompt(
    original_prompt: str,
    *,
    food_name: Optional[str] = None,
    quantity: Optional[str] = None,
) -> str:
    prompt = original_prompt + CORRECTIVE_DIRECTIVE
    if food_name:
        prompt += f'\n- The food to analyze is "{food_name}"'
        if quantity:
            prompt += f' in the quantity "{quantity}"'
        prompt += "."
    return prompt
