from __future__ import annotations

import os
from typing import List


class Settings:
    """Centralized configuration for the nutrition coaching backend."""

    def __init__(self) -> None:
        # ---- Model provider (OpenAI-compatible chat completions) ----
        self.groq_api_key: str | None = os.environ.get("GROQ_API_KEY")
        self.groq_base_url: str = os.environ.get(
            "GROQ_BASE_URL", "https://api.groq.com/openai/v1"
        )
        self.groq_model: str = os.environ.get(
            "GROQ_MODEL", "meta-llama/llama-4-maverick-17b-128e-instruct"
        )
        self.groq_timeout: float = float(os.environ.get("GROQ_TIMEOUT", "30"))
        self.groq_temperature: float = float(os.environ.get("GROQ_TEMPERATURE", "0.2"))
        self.groq_max_tokens: int = int(os.environ.get("GROQ_MAX_TOKENS", "3000"))

        # ---- Extraction retry budgets ----
        self.max_parse_retries: int = int(os.environ.get("NUTRICOACH_MAX_PARSE_RETRIES") or "3")
        self.max_regen_retries: int = int(os.environ.get("NUTRICOACH_MAX_REGEN_RETRIES") or "3")
        self.regen_backoff_sec: float = float(os.environ.get("NUTRICOACH_REGEN_BACKOFF_SEC") or "1.0")
        self.image_validation_retries: int = int(
            os.environ.get("NUTRICOACH_IMAGE_VALIDATION_RETRIES") or "3"
        )
        self.max_image_bytes: int = int(os.environ.get("NUTRICOACH_MAX_IMAGE_BYTES") or str(4 * 1024 * 1024))

        self.host: str = os.environ.get("NUTRICOACH_HOST") or os.environ.get("HOST") or "127.0.0.1"
        self.port_raw: str = os.environ.get("NUTRICOACH_PORT") or os.environ.get("PORT") or "8000"

        cors = os.environ.get("NUTRICOACH_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()
