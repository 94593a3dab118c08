# -*- coding: utf-8 -*-
"""
NutriCoach API

Food photo / text nutrition analysis with personal macro coaching.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .food.api import router as food_router
from .food.llm import GroqClient

app = FastAPI(
    title="NutriCoach",
    description="Food photo and text nutrition analysis",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(food_router)


@app.on_event("startup")
async def _startup_model_client() -> None:
    # Raises ConfigError when GROQ_API_KEY is missing, so the process refuses to start.
    app.state.model_client = GroqClient.from_settings(settings)


@app.on_event("shutdown")
async def _shutdown_model_client() -> None:
    client = getattr(app.state, "model_client", None)
    if client is not None:
        await client.aclose()
        app.state.model_client = None


@app.get("/api/health", summary="Liveness probe")
def health() -> dict:
    return {"status": "ok", "model": settings.groq_model}


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    try:
        port = int(settings.port_raw)
    except Exception:
        port = 8000

    uvicorn.run("nutricoach.api:app", host=settings.host, port=port, reload=False)
