# -*- coding: utf-8 -*-
"""Food — exception types."""

from __future__ import annotations


class NutriCoachError(Exception):
    """Base class for errors raised by the food analysis package."""


class ConfigError(NutriCoachError):
    """Required configuration (e.g. the model API key) is missing or invalid."""


class ModelError(NutriCoachError):
    """The model provider call failed or returned an unusable body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MissingImagePayload(NutriCoachError):
    """An image-mode model call was requested without image data."""
