# -*- coding: utf-8 -*-
"""Food — input validation (text input and "is this food?" image check)."""

from __future__ import annotations

import json
import logging
import re

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .llm import ModelInvoker
from .models import FoodValidationResult, ValidationResult
from .prompts import build_food_validation_prompt
from .repair import normalize_expressions, repair_json

logger = logging.getLogger(__name__)

_DIGITS_ONLY = re.compile(r"^\d+$")
_NO_LETTERS = re.compile(r"^[^a-zA-Z]+$")


def validate_food_text_input(food_name: str, quantity: str) -> ValidationResult:
    name = (food_name or "").strip()
    qty = (quantity or "").strip()
    if not name:
        return ValidationResult(is_valid=False, error="Please tell me what food you're eating")
    if not qty:
        return ValidationResult(is_valid=False, error="Please specify how much you're having")
    if len(name) < 2:
        return ValidationResult(is_valid=False, error="Food name needs to be at least 2 characters")
    if _DIGITS_ONLY.match(name) or _NO_LETTERS.match(name):
        return ValidationResult(is_valid=False, error="Please provide a valid food name with letters")
    return ValidationResult(is_valid=True)


async def validate_food_image(
    invoker: ModelInvoker,
    image: str,
    *,
    max_retries: int = 3,
    backoff_seconds: float = 1.0,
) -> FoodValidationResult:
    """Ask the model whether the image shows food or a nutrition label.

    Parse or model failures are retried; when every attempt fails the image is
    reported as not food, with the last error as the reason.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, max_retries)),
        wait=wait_fixed(backoff_seconds),
        retry=retry_if_exception_type(Exception),
        after=_log_failed_attempt,
        retry_error_callback=_not_food_after_retries,
    )
    return await retrying(_ask_contains_food, invoker, build_food_validation_prompt(), image)


async def _ask_contains_food(invoker: ModelInvoker, prompt: str, image: str) -> FoodValidationResult:
    response = await invoker(prompt, image)
    parsed = json.loads(repair_json(normalize_expressions(response or "")))
    if not isinstance(parsed, dict):
        raise ValueError("No valid JSON object found in response")
    reason = parsed.get("reason")
    return FoodValidationResult(
        is_food=parsed.get("containsFood") is True,
        reason=reason.strip() if isinstance(reason, str) and reason.strip() else "No reason provided",
    )


def _log_failed_attempt(retry_state: RetryCallState) -> None:
    logger.warning(
        "food image validation attempt %d failed: %s",
        retry_state.attempt_number,
        retry_state.outcome.exception() if retry_state.outcome else "unknown error",
    )


def _not_food_after_retries(retry_state: RetryCallState) -> FoodValidationResult:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    return FoodValidationResult(
        is_food=False,
        reason=f"Error occurred during food validation after {retry_state.attempt_number} attempts: {exc}",
    )
