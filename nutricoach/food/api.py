# -*- coding: utf-8 -*-
"""Food — API endpoints."""

from __future__ import annotations

import base64
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from ..config import Settings, settings
from .llm import ModelInvoker, fetch_image_as_data_url, to_data_url
from .models import (
    AnalysisContext,
    AnalysisMode,
    FoodAnalysis,
    FoodAnalysisResponse,
    FoodImageAnalysisRequest,
    FoodTextAnalysisRequest,
    TextAnalysisInput,
)
from .service import analyze_food_from_image, analyze_food_from_text
from .validation import validate_food_image, validate_food_text_input

router = APIRouter(prefix="/api/food", tags=["Food"])


def get_settings() -> Settings:
    return settings


def get_model_invoker(request: Request) -> ModelInvoker:
    client = getattr(request.app.state, "model_client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Service configuration error: model client not initialized")
    return client


def _decode_image_or_400(image_base64: str, max_bytes: int) -> bytes:
    try:
        data = base64.b64decode(image_base64, validate=True)
    except Exception as exc:
        raise HTTPException(status_code=400, detail=f"Invalid base64 image: {exc}") from exc
    if len(data) > max_bytes:
        raise HTTPException(status_code=400, detail=f"Image too large: {len(data)} bytes > {max_bytes}")
    return data


async def _resolve_image_or_400(request: FoodImageAnalysisRequest, max_bytes: int) -> str:
    if request.image_base64:
        data = _decode_image_or_400(request.image_base64, max_bytes=max_bytes)
        return to_data_url(request.image_mime or "image/jpeg", data)
    if not request.image_url:
        raise HTTPException(status_code=400, detail="Image URL is required")
    if request.image_url.startswith("data:"):
        return request.image_url
    try:
        return await fetch_image_as_data_url(request.image_url, max_bytes=max_bytes)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid or inaccessible image URL: {exc}") from exc


def _envelope(
    analysis: FoodAnalysis,
    mode: AnalysisMode,
    context: Optional[AnalysisContext],
    **extra,
) -> FoodAnalysisResponse:
    suggestion = analysis.suggestion if context is not None else None
    return FoodAnalysisResponse(
        data=analysis,
        analysis_type=mode,
        context_provided=context is not None,
        has_recommendation=suggestion is not None,
        has_complementary_foods=bool(suggestion and suggestion.meal_completion_suggestions),
        recommends_eating=suggestion.should_eat if suggestion is not None else None,
        timestamp=datetime.now(timezone.utc).isoformat(),
        **extra,
    )


@router.post(
    "/analyze-image",
    response_model=FoodAnalysisResponse,
    response_model_exclude_none=True,
    summary="Analyze a food photo (macros + optional coaching)",
)
async def analyze_image(
    request: FoodImageAnalysisRequest,
    invoker: ModelInvoker = Depends(get_model_invoker),
    cfg: Settings = Depends(get_settings),
):
    image = await _resolve_image_or_400(request, cfg.max_image_bytes)

    validation = await validate_food_image(
        invoker,
        image,
        max_retries=cfg.image_validation_retries,
        backoff_seconds=cfg.regen_backoff_sec,
    )
    if not validation.is_food:
        raise HTTPException(
            status_code=400,
            detail=f"Image does not contain food items. Please upload an image with visible food. ({validation.reason})",
        )

    analysis = await analyze_food_from_image(invoker, image, request.context, cfg=cfg)
    return _envelope(analysis, AnalysisMode.image, request.context, image_url=request.image_url)


@router.post(
    "/analyze-text",
    response_model=FoodAnalysisResponse,
    response_model_exclude_none=True,
    summary="Analyze a food by name and quantity",
)
async def analyze_text(
    request: FoodTextAnalysisRequest,
    invoker: ModelInvoker = Depends(get_model_invoker),
    cfg: Settings = Depends(get_settings),
):
    if not request.food_name or not request.quantity:
        raise HTTPException(status_code=400, detail="Missing required fields: both foodName and quantity are required")

    validation = validate_food_text_input(request.food_name, request.quantity)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail=f"Invalid input: {validation.error}")

    food_name = request.food_name.strip()
    quantity = request.quantity.strip()
    analysis = await analyze_food_from_text(invoker, food_name, quantity, request.context, cfg=cfg)
    return _envelope(
        analysis,
        AnalysisMode.text,
        request.context,
        input=TextAnalysisInput(food_name=food_name, quantity=quantity),
    )
