# -*- coding: utf-8 -*-
"""Food domain (photo / text analysis).

The core is ``extraction``: it turns raw, sometimes malformed model text into a strict
``FoodAnalysis`` with bounded retries and a fixed fallback.
"""

from __future__ import annotations

from .extraction import ExtractionPipeline, extract
from .models import AnalysisContext, AnalysisMode, FoodAnalysis, FoodItem, MacroSet, Suggestion

__all__ = [
    "AnalysisContext",
    "AnalysisMode",
    "ExtractionPipeline",
    "FoodAnalysis",
    "FoodItem",
    "MacroSet",
    "Suggestion",
    "extract",
]
