# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest
from typing import List, Optional

from nutricoach.food.errors import ModelError
from nutricoach.food.validation import validate_food_image, validate_food_text_input


class TestFoodTextInput(unittest.TestCase):
    def test_valid(self) -> None:
        result = validate_food_text_input("  grilled chicken ", "150g")
        self.assertTrue(result.is_valid)
        self.assertIsNone(result.error)

    def test_rejections(self) -> None:
        cases = {
            ("", "1 cup"): "Please tell me what food you're eating",
            ("rice", "   "): "Please specify how much you're having",
            ("a", "1"): "Food name needs to be at least 2 characters",
            ("12345", "2"): "Please provide a valid food name with letters",
            ("!!??", "2"): "Please provide a valid food name with letters",
        }
        for (name, quantity), error in cases.items():
            result = validate_food_text_input(name, quantity)
            self.assertFalse(result.is_valid, msg=name)
            self.assertEqual(result.error, error)


class TestFoodImageValidation(unittest.IsolatedAsyncioTestCase):
    async def test_fenced_reply_with_trailing_comma(self) -> None:
        seen: List[Optional[str]] = []

        async def invoker(prompt: str, image: Optional[str] = None) -> str:
            seen.append(image)
            return '```json\n{"containsFood": true, "reason": "a bowl of ramen",}\n```'

        result = await validate_food_image(invoker, "data:image/jpeg;base64,AAAA", backoff_seconds=0)
        self.assertTrue(result.is_food)
        self.assertEqual(result.reason, "a bowl of ramen")
        self.assertEqual(seen, ["data:image/jpeg;base64,AAAA"])

    async def test_string_true_is_not_food(self) -> None:
        async def invoker(prompt: str, image: Optional[str] = None) -> str:
            return '{"containsFood": "true"}'

        result = await validate_food_image(invoker, "data:image/jpeg;base64,AAAA", backoff_seconds=0)
        self.assertFalse(result.is_food)
        self.assertEqual(result.reason, "No reason provided")

    async def test_retries_then_reports_failure(self) -> None:
        calls = []

        async def invoker(prompt: str, image: Optional[str] = None) -> str:
            calls.append(prompt)
            if len(calls) < 2:
                raise ModelError("timeout")
            return "no json here"

        result = await validate_food_image(
            invoker, "data:image/jpeg;base64,AAAA", max_retries=2, backoff_seconds=0
        )
        self.assertEqual(len(calls), 2)
        self.assertFalse(result.is_food)
        self.assertIn("after 2 attempts", result.reason)
        self.assertIn("Expecting value", result.reason)

    async def test_recovers_on_a_later_attempt(self) -> None:
        replies = [ModelError("rate limit", status_code=429), '{"containsFood": true, "reason": "toast"}']

        async def invoker(prompt: str, image: Optional[str] = None) -> str:
            reply = replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply

        result = await validate_food_image(invoker, "data:image/jpeg;base64,AAAA", backoff_seconds=0)
        self.assertTrue(result.is_food)
        self.assertEqual(result.reason, "toast")
        self.assertEqual(replies, [])

    async def test_zero_retries_still_asks_once(self) -> None:
        calls = []

        async def invoker(prompt: str, image: Optional[str] = None) -> str:
            calls.append(prompt)
            raise ModelError("down")

        result = await validate_food_image(invoker, "data:image/jpeg;base64,AAAA", max_retries=0, backoff_seconds=0)
        self.assertEqual(len(calls), 1)
        self.assertFalse(result.is_food)
        self.assertIn("after 1 attempts: down", result.reason)


if __name__ == "__main__":
    unittest.main()
