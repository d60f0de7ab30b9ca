"""
scoring.py — CustomScore normalization

Every value that reaches the widget state (typed text, slider position,
score loaded from the CRM) goes through validate_score() first.
"""

import re
from typing import Any, Optional

MIN_SCORE = 0
MAX_SCORE = 100

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Any) -> Optional[int]:
    """Leading-integer parse: ' 42abc' -> 42, '3.9' -> 3, 'abc' -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    m = _LEADING_INT.match(str(value))
    return int(m.group(1)) if m else None


def validate_score(value: Any) -> int:
    """Normalize any input to an int in [0, 100]. Non-numeric input maps to 0."""
    num = parse_int(value)
    if num is None or num < MIN_SCORE:
        return MIN_SCORE
    if num > MAX_SCORE:
        return MAX_SCORE
    return num


def score_display(score: int) -> str:
    return f"Score: {score}/{MAX_SCORE}"


def slider_fill(score: int) -> str:
    return f"{score}%"


def _dict_at(obj: Any, key: str) -> dict:
    """obj[key] when both are dicts, else {}. Odd payload shapes read as missing."""
    if not isinstance(obj, dict):
        return {}
    child = obj.get(key)
    return child if isinstance(child, dict) else {}


def extract_score(account: dict) -> int:
    """CustomScore from an account payload; absent or empty means 0."""
    extensions = _dict_at(_dict_at(account, "value"), "extensions")
    return validate_score(extensions.get("CustomScore"))


def extract_token(account: dict) -> Optional[str]:
    """adminData.updatedOn — the optimistic-concurrency token."""
    admin = _dict_at(_dict_at(account, "value"), "adminData")
    token = admin.get("updatedOn")
    return str(token) if token else None


def format_if_match(token: str) -> str:
    """Quote the token as an opaque entity tag."""
    return f'"{token}"'
