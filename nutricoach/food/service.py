# -*- coding: utf-8 -*-
"""Food — analysis use cases (image and text) on top of the extraction pipeline."""

from __future__ import annotations

import logging
from typing import Optional

from ..config import Settings, settings as default_settings
from .extraction import ExtractionPipeline
from .llm import ModelInvoker
from .models import AnalysisContext, AnalysisMode, FoodAnalysis
from .prompts import build_image_analysis_prompt, build_text_analysis_prompt

logger = logging.getLogger(__name__)


def pipeline_from_settings(cfg: Settings) -> ExtractionPipeline:
    return ExtractionPipeline(
        max_parse_retries=cfg.max_parse_retries,
        max_regen_retries=cfg.max_regen_retries,
        backoff_seconds=cfg.regen_backoff_sec,
    )


async def _first_response(invoker: ModelInvoker, prompt: str, image: Optional[str]) -> str:
    # A failed first call still goes through the pipeline, which escalates to regeneration.
    try:
        return await invoker(prompt, image)
    except Exception as exc:
        logger.warning("initial food analysis call failed: %s", exc, exc_info=True)
        return ""


async def analyze_food_from_image(
    invoker: ModelInvoker,
    image: str,
    context: Optional[AnalysisContext] = None,
    *,
    cfg: Settings | None = None,
) -> FoodAnalysis:
    cfg = cfg or default_settings
    prompt = build_image_analysis_prompt(context)
    raw = await _first_response(invoker, prompt, image)
    return await pipeline_from_settings(cfg).extract(
        raw,
        expects_suggestion=context is not None,
        invoker=invoker,
        prompt=prompt,
        image=image,
        mode=AnalysisMode.image,
    )


async def analyze_food_from_text(
    invoker: ModelInvoker,
    food_name: str,
    quantity: str,
    context: Optional[AnalysisContext] = None,
    *,
    cfg: Settings | None = None,
) -> FoodAnalysis:
    cfg = cfg or default_settings
    prompt = build_text_analysis_prompt(food_name, quantity, context)
    raw = await _first_response(invoker, prompt, None)
    return await pipeline_from_settings(cfg).extract(
        raw,
        expects_suggestion=context is not None,
        invoker=invoker,
        prompt=prompt,
        mode=AnalysisMode.text,
        food_name=food_name,
        quantity=quantity,
    )
