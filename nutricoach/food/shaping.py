# -*- coding: utf-8 -*-
"""Food — map loosely-typed model JSON onto the strict FoodAnalysis shape."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .models import (
    UNKNOWN_FOOD,
    UNKNOWN_QUANTITY,
    FoodAnalysis,
    FoodItem,
    MacroSet,
    MealCompletionItem,
    RawAnalysis,
    Suggestion,
)
from .repair import sanitize_numeric

FALLBACK_FOOD_NAME = "Analysis failed"
FALLBACK_REASON = (
    "I couldn't analyze this properly, even after several attempts. "
    "Could you try again with a clearer photo or enter the food manually?"
)
FALLBACK_ALTERNATIVES = [
    "Try uploading a clearer image",
    "Enter the food details manually",
    "Contact support if the problem continues",
]

_FALSE_WORDS = {"", "false", "no", "n", "0", "null", "none"}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any, default: str) -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    text = value.strip() if isinstance(value, str) else str(value)
    return text or default


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_WORDS
    return bool(value)


def _as_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    out: List[str] = []
    for item in value:
        if item is None or isinstance(item, (dict, list)):
            continue
        s = item.strip() if isinstance(item, str) else str(item)
        if s:
            out.append(s)
    return out


def shape_macros(raw: Any) -> MacroSet:
    """Sanitize each macro independently; missing or garbage fields become 0."""
    data = _as_dict(raw)
    return MacroSet(
        calories=sanitize_numeric(data.get("calories")),
        protein=sanitize_numeric(data.get("protein")),
        carbs=sanitize_numeric(data.get("carbs")),
        fat=sanitize_numeric(data.get("fat")),
    )


def shape_food_item(raw: Any) -> FoodItem:
    data = _as_dict(raw)
    return FoodItem(
        name=_text(data.get("name"), UNKNOWN_FOOD),
        quantity=_text(data.get("quantity"), UNKNOWN_QUANTITY),
        macros=shape_macros(data.get("macros")),
    )


def _shape_completion_item(raw: Any) -> MealCompletionItem:
    data = _as_dict(raw)
    item = shape_food_item(data)
    return MealCompletionItem(
        name=item.name,
        quantity=item.quantity,
        macros=item.macros,
        reason=_text(data.get("reason"), MealCompletionItem.model_fields["reason"].default),
    )


def shape_suggestion(raw: Dict[str, Any]) -> Suggestion:
    suggestion = Suggestion(
        should_eat=_as_bool(raw.get("shouldEat")),
        reason=_text(raw.get("reason"), Suggestion.model_fields["reason"].default),
        alternatives=_as_str_list(raw.get("alternatives")),
    )
    recommended = raw.get("recommendedQuantity")
    if recommended is not None:
        suggestion.recommended_quantity = recommended if isinstance(recommended, str) else str(recommended)

    complementary = raw.get("complementaryFoods")
    if isinstance(complementary, list):
        suggestion.meal_completion_suggestions = [_shape_completion_item(f) for f in complementary]

    if raw.get("completeMealMacros") is not None:
        suggestion.complete_meal_macros = shape_macros(raw.get("completeMealMacros"))
    return suggestion


def shape_analysis(raw: RawAnalysis, expects_suggestion: bool) -> FoodAnalysis:
    """Build the strict analysis from decoded output.

    Totals are taken from the model as given (sanitized), never recomputed from items.
    A suggestion is attached only when one was expected and the model sent an object.
    """
    analysis = FoodAnalysis(
        food_items=[shape_food_item(item) for item in raw.food_items],
        total_macros=shape_macros(raw.total_macros),
    )
    if expects_suggestion and isinstance(raw.suggestion, dict):
        analysis.suggestion = shape_suggestion(raw.suggestion)
    return analysis


def fallback_analysis(expects_suggestion: bool) -> FoodAnalysis:
    suggestion: Optional[Suggestion] = None
    if expects_suggestion:
        suggestion = Suggestion(
            should_eat=False,
            reason=FALLBACK_REASON,
            alternatives=list(FALLBACK_ALTERNATIVES),
        )
    return FoodAnalysis(
        food_items=[FoodItem(name=FALLBACK_FOOD_NAME, quantity="Unknown", macros=MacroSet())],
        total_macros=MacroSet(),
        suggestion=suggestion,
    )
