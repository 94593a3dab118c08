# -*- coding: utf-8 -*-
"""Food — resilient extraction of a FoodAnalysis from raw model text.

The pipeline is a small finite-state machine::

    PARSE(0) .. PARSE(n-1) -> REGENERATE(0) .. REGENERATE(m-1) -> FALLBACK

Any attempt whose text decodes and validates ends in SUCCESS. ``PARSE`` attempts only
re-repair the text already in hand. ``REGENERATE`` attempts ask the model again with
a corrective directive appended to the original prompt, waiting a fixed backoff
between them. ``FALLBACK`` returns a fixed degraded analysis, so the caller always
gets a value back.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from pydantic import ValidationError

from .errors import MissingImagePayload
from .llm import ModelInvoker
from .models import AnalysisMode, FoodAnalysis, RawAnalysis
from .prompts import build_regeneration_prompt
from .repair import normalize_expressions, repair_json
from .shaping import fallback_analysis, shape_analysis

logger = logging.getLogger(__name__)


class AttemptKind(str, Enum):
    parse = "parse"
    regenerate = "regenerate"
    success = "success"
    fallback = "fallback"


@dataclass(frozen=True)
class ExtractionState:
    kind: AttemptKind
    index: int = 0

    @property
    def terminal(self) -> bool:
        return self.kind in (AttemptKind.success, AttemptKind.fallback)


@dataclass(frozen=True)
class Decoded:
    raw: RawAnalysis


@dataclass(frozen=True)
class ExtractionError:
    stage: str  # parse | validate | model | image
    reason: str


DecodeResult = Union[Decoded, ExtractionError]


@dataclass
class ExtractionOutcome:
    analysis: FoodAnalysis
    state: ExtractionState
    attempts: int
    last_attempt: Optional[ExtractionState] = None
    errors: List[ExtractionError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state.kind is AttemptKind.success


def decode_analysis(text: str) -> DecodeResult:
    """normalize -> repair -> parse -> validate; never raises."""
    candidate = repair_json(normalize_expressions(text))
    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, RecursionError) as exc:
        return ExtractionError("parse", f"invalid JSON: {exc}")
    try:
        return Decoded(RawAnalysis.model_validate(parsed))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in exc.errors()
        )
        return ExtractionError("validate", problems)


class ExtractionPipeline:
    def __init__(
        self,
        *,
        max_parse_retries: int = 3,
        max_regen_retries: int = 3,
        backoff_seconds: float = 1.0,
    ) -> None:
        self.max_parse_retries = max_parse_retries
        self.max_regen_retries = max_regen_retries
        self.backoff_seconds = backoff_seconds

    def _first_regeneration(self, can_regenerate: bool) -> ExtractionState:
        if can_regenerate and self.max_regen_retries > 0:
            return ExtractionState(AttemptKind.regenerate, 0)
        return ExtractionState(AttemptKind.fallback)

    def initial_state(self, can_regenerate: bool = True) -> ExtractionState:
        if self.max_parse_retries > 0:
            return ExtractionState(AttemptKind.parse, 0)
        return self._first_regeneration(can_regenerate)

    def advance(self, state: ExtractionState, can_regenerate: bool = True) -> ExtractionState:
        """Next state after a failed attempt in ``state``."""
        if state.kind is AttemptKind.parse:
            if state.index + 1 < self.max_parse_retries:
                return ExtractionState(AttemptKind.parse, state.index + 1)
            return self._first_regeneration(can_regenerate)
        if state.kind is AttemptKind.regenerate:
            if state.index + 1 < self.max_regen_retries:
                return ExtractionState(AttemptKind.regenerate, state.index + 1)
            return ExtractionState(AttemptKind.fallback)
        raise ValueError(f"no transition out of terminal state {state.kind.value}")

    async def _regenerate(
        self,
        invoker: ModelInvoker,
        prompt: str,
        image: Optional[str],
        mode: AnalysisMode,
        food_name: Optional[str],
        quantity: Optional[str],
    ) -> DecodeResult:
        text_mode = mode is AnalysisMode.text
        augmented = build_regeneration_prompt(
            prompt,
            food_name=food_name if text_mode else None,
            quantity=quantity if text_mode else None,
        )
        try:
            if not text_mode and not image:
                raise MissingImagePayload("image data is required to regenerate an image analysis")
            response = await invoker(augmented, None if text_mode else image)
        except MissingImagePayload as exc:
            return ExtractionError("image", str(exc))
        except Exception as exc:  # provider failures only cost this attempt
            return ExtractionError("model", f"{type(exc).__name__}: {exc}")
        if not isinstance(response, str):
            response = "" if response is None else str(response)
        return decode_analysis(response)

    async def run(
        self,
        raw_text: str,
        *,
        expects_suggestion: bool,
        invoker: Optional[ModelInvoker] = None,
        prompt: str = "",
        image: Optional[str] = None,
        mode: AnalysisMode = AnalysisMode.image,
        food_name: Optional[str] = None,
        quantity: Optional[str] = None,
    ) -> ExtractionOutcome:
        can_regenerate = invoker is not None
        state = self.initial_state(can_regenerate)
        text = raw_text if isinstance(raw_text, str) else ""
        errors: List[ExtractionError] = []
        attempts = 0
        last: Optional[ExtractionState] = None

        while not state.terminal:
            attempts += 1
            last = state
            if state.kind is AttemptKind.parse:
                result = decode_analysis(text)
            elif invoker is not None:
                result = await self._regenerate(invoker, prompt, image, mode, food_name, quantity)
            else:
                # advance() never yields REGENERATE without an invoker
                raise RuntimeError("regeneration attempted without a model invoker")

            if isinstance(result, Decoded):
                logger.info(
                    "food extraction succeeded at %s attempt %d (%d total)",
                    state.kind.value,
                    state.index + 1,
                    attempts,
                )
                return ExtractionOutcome(
                    analysis=shape_analysis(result.raw, expects_suggestion),
                    state=ExtractionState(AttemptKind.success),
                    attempts=attempts,
                    last_attempt=state,
                    errors=errors,
                )

            errors.append(result)
            logger.warning(
                "food extraction %s attempt %d failed at %s: %s",
                state.kind.value,
                state.index + 1,
                result.stage,
                result.reason,
            )
            next_state = self.advance(state, can_regenerate)
            if next_state.kind is AttemptKind.parse:
                text = repair_json(text)
            elif state.kind is AttemptKind.regenerate and next_state.kind is AttemptKind.regenerate:
                await asyncio.sleep(self.backoff_seconds)
            state = next_state

        logger.error(
            "food extraction fell back after %d attempts (last error: %s)",
            attempts,
            errors[-1].reason if errors else "none",
        )
        return ExtractionOutcome(
            analysis=fallback_analysis(expects_suggestion),
            state=state,
            attempts=attempts,
            last_attempt=last,
            errors=errors,
        )

    async def extract(self, raw_text: str, **kwargs) -> FoodAnalysis:
        outcome = await self.run(raw_text, **kwargs)
        return outcome.analysis


async def extract(
    raw_text: str,
    *,
    expects_suggestion: bool,
    max_parse_retries: int = 3,
    max_regen_retries: int = 3,
    invoker: Optional[ModelInvoker] = None,
    prompt: str = "",
    image: Optional[str] = None,
    mode: AnalysisMode = AnalysisMode.image,
    food_name: Optional[str] = None,
    quantity: Optional[str] = None,
    backoff_seconds: float = 1.0,
) -> FoodAnalysis:
    """Turn raw model text into a FoodAnalysis. Never raises; may return the fallback."""
    pipeline = ExtractionPipeline(
        max_parse_retries=max_parse_retries,
        max_regen_retries=max_regen_retries,
        backoff_seconds=backoff_seconds,
    )
    return await pipeline.extract(
        raw_text,
        expects_suggestion=expects_suggestion,
        invoker=invoker,
        prompt=prompt,
        image=image,
        mode=mode,
        food_name=food_name,
        quantity=quantity,
    )
