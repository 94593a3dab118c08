# -*- coding: utf-8 -*-
"""Food — textual repair of model output before JSON decoding.

Three independent helpers:

* ``normalize_expressions`` computes inline arithmetic the model sometimes leaves in
  numeric fields (``"calories": 95+110``).
* ``repair_json`` heals common syntax defects and cuts away surrounding prose.
* ``sanitize_numeric`` turns any decoded value into a finite, non-negative float.
"""

from __future__ import annotations

import math
import numbers
import re
from typing import Any, Callable, List, Tuple

_NUMBER = r"(\d+\.?\d*)"


def _fmt(value: float) -> str:
    if not math.isfinite(value):
        return "0.00"
    return f"{value:.2f}"


def _add(a: float, b: float) -> str:
    return _fmt(a + b)


def _subtract(a: float, b: float) -> str:
    return _fmt(max(0.0, a - b))


def _multiply(a: float, b: float) -> str:
    return _fmt(a * b)


def _divide(a: float, b: float) -> str:
    if b == 0:
        return "0.00"
    return _fmt(a / b)


# Order matters: additive passes run before multiplicative ones.
_EXPRESSION_PASSES: List[Tuple[re.Pattern[str], Callable[[float, float], str]]] = [
    (re.compile(_NUMBER + r"\+" + _NUMBER), _add),
    (re.compile(_NUMBER + r"-" + _NUMBER), _subtract),
    (re.compile(_NUMBER + r"\*" + _NUMBER), _multiply),
    (re.compile(_NUMBER + r"/" + _NUMBER), _divide),
]


def normalize_expressions(text: str) -> str:
    """Replace ``a<op>b`` digit expressions with their value rendered to two decimals.

    This is a textual heuristic, not an evaluator: no precedence, no parentheses.
    """
    fixed = text
    for pattern, compute in _EXPRESSION_PASSES:
        fixed = pattern.sub(
            lambda m, compute=compute: compute(float(m.group(1)), float(m.group(2))),
            fixed,
        )
    return fixed


def _split_string_literals(text: str) -> List[Tuple[bool, str]]:
    """Split text into ``(is_string_literal, chunk)`` runs, honouring backslash escapes.

    An unterminated literal runs to the end of the text.
    """
    parts: List[Tuple[bool, str]] = []
    buf: List[str] = []
    in_str = False
    escaped = False
    for ch in text:
        if in_str:
            buf.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == "\"":
                parts.append((True, "".join(buf)))
                buf = []
                in_str = False
            continue

        if ch == "\"":
            if buf:
                parts.append((False, "".join(buf)))
            buf = [ch]
            in_str = True
            continue

        buf.append(ch)

    if buf:
        parts.append((in_str, "".join(buf)))
    return parts


def _outside_strings(text: str, rewrite: Callable[[str], str]) -> str:
    return "".join(
        chunk if is_literal else rewrite(chunk)
        for is_literal, chunk in _split_string_literals(text)
    )


# A whole run of commas before a closer goes at once (",,, }" -> " }").
_TRAILING_COMMA_RE = re.compile(r",(?:\s*,)*(\s*[}\]])")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f]+")
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_$][A-Za-z0-9_$]*)\s*:")
# An odd run of backslashes before a single quote: the last one escapes the quote.
_ESCAPED_SINGLE_QUOTE_RE = re.compile(r"(?<!\\)((?:\\\\)*)\\'")


def _isolate_object(text: str) -> str:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return text
    return text[start : end + 1]


def _repair_pass(text: str) -> str:
    repaired = _outside_strings(text, lambda chunk: _TRAILING_COMMA_RE.sub(r"\1", chunk))
    repaired = _CONTROL_CHARS_RE.sub("", repaired)
    repaired = _outside_strings(repaired, lambda chunk: _BARE_KEY_RE.sub(r'\1"\2":', chunk))
    repaired = _ESCAPED_SINGLE_QUOTE_RE.sub(r"\1'", repaired)
    return _isolate_object(repaired)


def repair_json(text: str) -> str:
    """Heal trailing commas, control characters, bare keys and stray ``\\'`` escapes,
    then keep only the outermost ``{...}`` span.

    Passes repeat until the text stops changing, so the result is a fixed point:
    ``repair_json(repair_json(x)) == repair_json(x)``. Well-formed compact JSON comes
    back untouched. Text without a ``{...}`` span is returned as-is for the caller's
    decoder to reject.
    """
    # Terminates: every rewrite shortens the text except bare-key quoting, and a
    # quoted key is a string literal that the key rewrite never touches again.
    current = text
    while True:
        repaired = _repair_pass(current)
        if repaired == current:
            return current
        current = repaired


_NON_NUMERIC_RE = re.compile(r"[^0-9.]")
_LEADING_DECIMAL_RE = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def sanitize_numeric(value: Any) -> float:
    """Coerce any decoded value into a finite number ``>= 0``. Never raises.

    Strings keep only digits and dots (so ``"-5g"`` reads as 5); ``None``, containers
    and anything unparseable map to 0.
    """
    try:
        if isinstance(value, str):
            match = _LEADING_DECIMAL_RE.match(_NON_NUMERIC_RE.sub("", value))
            number = float(match.group(0)) if match else 0.0
        elif isinstance(value, numbers.Real):
            number = float(value)
        else:
            return 0.0
    except (OverflowError, ValueError, TypeError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return max(0.0, number)
