# -*- coding: utf-8 -*-
"""Food — Pydantic models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

UNKNOWN_FOOD = "Unknown food"
UNKNOWN_QUANTITY = "Unknown quantity"


class _CamelModel(BaseModel):
    # Wire format is camelCase (foodItems, totalMacros, shouldEat...).
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisMode(str, Enum):
    image = "image"
    text = "text"


class MacroSet(_CamelModel):
    calories: float = Field(0.0, ge=0, description="kcal")
    protein: float = Field(0.0, ge=0, description="grams")
    carbs: float = Field(0.0, ge=0, description="grams")
    fat: float = Field(0.0, ge=0, description="grams")


class FoodItem(_CamelModel):
    name: str = Field(UNKNOWN_FOOD, min_length=1, description="Food name, e.g. 'banana'")
    quantity: str = Field(UNKNOWN_QUANTITY, description="Portion with units, e.g. '1 medium'")
    macros: MacroSet = Field(default_factory=MacroSet)


class MealCompletionItem(FoodItem):
    reason: str = "Complements your meal"


class Suggestion(_CamelModel):
    should_eat: bool = False
    reason: str = "No specific advice provided"
    recommended_quantity: Optional[str] = None
    alternatives: List[str] = Field(default_factory=list)
    meal_completion_suggestions: Optional[List[MealCompletionItem]] = None
    complete_meal_macros: Optional[MacroSet] = None


class FoodAnalysis(_CamelModel):
    food_items: List[FoodItem] = Field(default_factory=list)
    total_macros: MacroSet = Field(default_factory=MacroSet)
    suggestion: Optional[Suggestion] = None


class AnalysisContext(_CamelModel):
    user_info: str = ""
    total_macros: MacroSet = Field(default_factory=MacroSet, description="Daily goal")
    consumed_macros: MacroSet = Field(default_factory=MacroSet, description="Eaten so far today")


class RawAnalysis(BaseModel):
    """Loosely-typed model output; only the two structural invariants are enforced.

    Field contents stay ``Any`` so the shaper can default each one independently.
    """

    model_config = ConfigDict(extra="allow", strict=True, populate_by_name=True)

    food_items: List[Any] = Field(..., alias="foodItems")
    total_macros: Dict[str, Any] = Field(..., alias="totalMacros")
    suggestion: Any = None


class ValidationResult(BaseModel):
    is_valid: bool
    error: Optional[str] = None


class FoodValidationResult(BaseModel):
    is_food: bool
    reason: str


# ---- HTTP request / response ----


class FoodImageAnalysisRequest(_CamelModel):
    image_url: Optional[str] = Field(None, description="Publicly reachable image URL")
    image_base64: Optional[str] = Field(None, min_length=16, description="Raw base64 without data-url prefix")
    image_mime: Optional[str] = Field(None, pattern=r"^image/(jpeg|jpg|png|webp|heic)$")
    context: Optional[AnalysisContext] = None


class FoodTextAnalysisRequest(_CamelModel):
    food_name: str = ""
    quantity: str = ""
    context: Optional[AnalysisContext] = None


class TextAnalysisInput(_CamelModel):
    food_name: str
    quantity: str


class FoodAnalysisResponse(_CamelModel):
    success: bool = True
    data: FoodAnalysis
    analysis_type: AnalysisMode
    context_provided: bool = False
    has_recommendation: bool = False
    has_complementary_foods: bool = False
    recommends_eating: Optional[bool] = None
    image_url: Optional[str] = None
    input: Optional[TextAnalysisInput] = None
    timestamp: str
