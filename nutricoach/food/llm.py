# -*- coding: utf-8 -*-
"""Food — multimodal model client (Groq, OpenAI-compatible chat completions)."""

from __future__ import annotations

import base64
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from ..config import Settings
from .errors import ConfigError, ModelError

logger = logging.getLogger(__name__)

# (prompt_text, optional image data-url) -> response text
ModelInvoker = Callable[[str, Optional[str]], Awaitable[str]]


def to_data_url(mime: str, image_bytes: bytes) -> str:
    b64 = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime};base64,{b64}"


async def fetch_image_as_data_url(
    url: str,
    client: httpx.AsyncClient | None = None,
    *,
    max_bytes: int | None = None,
) -> str:
    """Download an image and inline it as a ``data:`` URL.

    Raises ``ValueError`` when the URL cannot be fetched or the body exceeds ``max_bytes``.
    """
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=30, follow_redirects=True)
    try:
        resp = await http.get(url)
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        raise ValueError(f"Failed to fetch image URL: {exc}") from exc
    finally:
        if owns_client:
            await http.aclose()
    if max_bytes is not None and len(resp.content) > max_bytes:
        raise ValueError(f"Image too large: {len(resp.content)} bytes > {max_bytes}")
    mime = (resp.headers.get("content-type") or "image/jpeg").split(";", 1)[0].strip()
    return to_data_url(mime or "image/jpeg", resp.content)


def _extract_error_message(resp: httpx.Response) -> str:
    """Pull a readable message out of an OpenAI-style error body."""
    raw = resp.text or ""
    try:
        data = resp.json()
    except ValueError:
        snippet = raw.replace("\n", " ").strip()[:200]
        return snippet or resp.reason_phrase
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict):
            msg = err.get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        if isinstance(err, str) and err.strip():
            return err.strip()
        for key in ("message", "detail"):
            msg = data.get(key)
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
    return resp.reason_phrase


def _extract_completion_text(data: object) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list):
        return ""
    out: List[str] = []
    for choice in choices:
        if not isinstance(choice, dict):
            continue
        msg = choice.get("message")
        if isinstance(msg, dict):
            content = msg.get("content")
            if isinstance(content, str) and content:
                out.append(content)
                continue
        text = choice.get("text")
        if isinstance(text, str) and text:
            out.append(text)
    # Only the first choice is requested; keep it.
    return out[0] if out else ""


class GroqClient:
    """Async chat-completions client.

    Instances are callable, so one can be passed wherever a ``ModelInvoker`` is expected.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        temperature: float = 0.2,
        max_tokens: int = 3000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigError("GROQ_API_KEY environment variable is required")
        base = base_url.rstrip("/")
        self.url = base if base.endswith("/chat/completions") else f"{base}/chat/completions"
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._http = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "GroqClient":
        if not settings.groq_api_key:
            raise ConfigError("GROQ_API_KEY environment variable is required")
        return cls(
            api_key=settings.groq_api_key,
            base_url=settings.groq_base_url,
            model=settings.groq_model,
            timeout=settings.groq_timeout,
            temperature=settings.groq_temperature,
            max_tokens=settings.groq_max_tokens,
            **kwargs,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    def _payload(
        self,
        prompt: str,
        image: Optional[str],
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> Dict[str, Any]:
        if image:
            content: Any = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": image}},
            ]
        else:
            content = prompt
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": content}],
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": self.max_tokens if max_tokens is None else max_tokens,
        }

    async def complete(
        self,
        prompt: str,
        image: Optional[str] = None,
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        payload = self._payload(prompt, image, temperature, max_tokens)
        try:
            resp = await self._http.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            raise ModelError(f"Model API unreachable: {exc}") from exc

        if resp.status_code >= 400:
            message = _extract_error_message(resp)
            raise ModelError(f"Model API error ({resp.status_code}): {message}", status_code=resp.status_code)

        try:
            data = resp.json()
        except json.JSONDecodeError as exc:
            snippet = (resp.text or "").replace("\n", " ").strip()[:200]
            raise ModelError(f"Model API returned non-JSON response: {snippet}") from exc

        text = _extract_completion_text(data)
        logger.debug("model %s returned %d chars (image=%s)", self.model, len(text), bool(image))
        return text

    async def __call__(self, prompt: str, image: Optional[str] = None) -> str:
        return await self.complete(prompt, image)
