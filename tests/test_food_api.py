# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import unittest
from typing import List, Optional, Tuple
from unittest import mock

from fastapi.testclient import TestClient

from nutricoach.api import _startup_model_client, app
from nutricoach.config import Settings, settings
from nutricoach.food.api import get_model_invoker, get_settings
from nutricoach.food.errors import ConfigError

ANALYSIS = json.dumps(
    {
        "foodItems": [{"name": "rice", "quantity": "1 cup", "macros": {"calories": 205, "protein": 4.3, "carbs": 45, "fat": 0.4}}],
        "totalMacros": {"calories": 205, "protein": 4.3, "carbs": 45, "fat": 0.4},
        "suggestion": {
            "shouldEat": True,
            "reason": "Fits your remaining carbs",
            "alternatives": ["brown rice"],
            "complementaryFoods": [{"name": "chicken breast", "quantity": "100g", "macros": {"protein": 31}}],
        },
    }
)

CONTEXT = {
    "userInfo": "30 year old runner",
    "totalMacros": {"calories": 2500, "protein": 150, "carbs": 300, "fat": 80},
    "consumedMacros": {"calories": 1200, "protein": 60, "carbs": 150, "fat": 40},
}


class FakeModel:
    def __init__(self, validation: str = '{"containsFood": true, "reason": "a plate of rice"}') -> None:
        self.validation = validation
        self.calls: List[Tuple[str, Optional[str]]] = []

    async def __call__(self, prompt: str, image: Optional[str] = None) -> str:
        self.calls.append((prompt, image))
        if "containsFood" in prompt:
            return self.validation
        return ANALYSIS


def _fast_settings() -> Settings:
    cfg = Settings()
    cfg.regen_backoff_sec = 0
    return cfg


class TestFoodApi(unittest.TestCase):
    def setUp(self) -> None:
        self.model = FakeModel()
        app.dependency_overrides[get_model_invoker] = lambda: self.model
        app.dependency_overrides[get_settings] = _fast_settings
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_analyze_text_without_context(self) -> None:
        resp = self.client.post("/api/food/analyze-text", json={"foodName": " rice ", "quantity": "1 cup"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["analysisType"], "text")
        self.assertFalse(body["contextProvided"])
        self.assertFalse(body["hasRecommendation"])
        self.assertNotIn("suggestion", body["data"])
        self.assertEqual(body["data"]["foodItems"][0]["name"], "rice")
        self.assertEqual(body["input"], {"foodName": "rice", "quantity": "1 cup"})
        prompt, image = self.model.calls[0]
        self.assertIsNone(image)
        self.assertIn("rice", prompt)

    def test_analyze_text_with_context(self) -> None:
        resp = self.client.post(
            "/api/food/analyze-text",
            json={"foodName": "rice", "quantity": "1 cup", "context": CONTEXT},
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["contextProvided"])
        self.assertTrue(body["hasRecommendation"])
        self.assertTrue(body["hasComplementaryFoods"])
        self.assertTrue(body["recommendsEating"])
        suggestion = body["data"]["suggestion"]
        self.assertEqual(suggestion["reason"], "Fits your remaining carbs")
        self.assertEqual(suggestion["mealCompletionSuggestions"][0]["name"], "chicken breast")

    def test_analyze_text_rejects_bad_input(self) -> None:
        resp = self.client.post("/api/food/analyze-text", json={"foodName": "rice"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Missing required fields", resp.json()["detail"])

        resp = self.client.post("/api/food/analyze-text", json={"foodName": "123", "quantity": "2"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "Invalid input: Please provide a valid food name with letters")
        self.assertEqual(self.model.calls, [])

    def test_analyze_image_data_url(self) -> None:
        image = "data:image/png;base64,AAAA"
        resp = self.client.post("/api/food/analyze-image", json={"imageUrl": image})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["analysisType"], "image")
        self.assertEqual(body["imageUrl"], image)
        self.assertEqual(len(self.model.calls), 2)
        self.assertTrue(all(call_image == image for _, call_image in self.model.calls))

    def test_analyze_image_base64(self) -> None:
        resp = self.client.post(
            "/api/food/analyze-image",
            json={"imageBase64": "iVBORw0KGgoAAAANSUhEUg==", "imageMime": "image/png"},
        )
        self.assertEqual(resp.status_code, 200)
        _, image = self.model.calls[0]
        self.assertEqual(image, "data:image/png;base64,iVBORw0KGgoAAAANSUhEUg==")

    def test_analyze_image_url_fetch_is_size_capped(self) -> None:
        fetch = mock.AsyncMock(side_effect=ValueError("Image too large: 9000000 bytes > 4194304"))
        with mock.patch("nutricoach.food.api.fetch_image_as_data_url", new=fetch):
            resp = self.client.post("/api/food/analyze-image", json={"imageUrl": "https://img.example.test/meal.jpg"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Image too large", resp.json()["detail"])
        fetch.assert_awaited_once_with("https://img.example.test/meal.jpg", max_bytes=Settings().max_image_bytes)
        self.assertEqual(self.model.calls, [])

    def test_analyze_image_not_food(self) -> None:
        self.model.validation = '{"containsFood": false, "reason": "a photo of a dog"}'
        resp = self.client.post("/api/food/analyze-image", json={"imageUrl": "data:image/png;base64,AAAA"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("a photo of a dog", resp.json()["detail"])
        self.assertEqual(len(self.model.calls), 1)

    def test_analyze_image_requires_image(self) -> None:
        resp = self.client.post("/api/food/analyze-image", json={})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "Image URL is required")

    def test_missing_model_client(self) -> None:
        del app.dependency_overrides[get_model_invoker]
        resp = self.client.post("/api/food/analyze-text", json={"foodName": "rice", "quantity": "1 cup"})
        self.assertEqual(resp.status_code, 503)

    def test_health(self) -> None:
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")


class TestStartup(unittest.IsolatedAsyncioTestCase):
    async def test_startup_requires_api_key(self) -> None:
        with mock.patch.object(settings, "groq_api_key", None):
            with self.assertRaises(ConfigError):
                await _startup_model_client()


if __name__ == "__main__":
    unittest.main()
