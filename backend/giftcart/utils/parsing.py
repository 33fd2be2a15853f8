"""
Lenient parsing for semi-structured request and catalog fields.

Malformed optional input is normalized to a safe default instead of being
rejected: garbage variation JSON becomes an empty list, a non-numeric quantity
becomes the caller's default.
"""
import json
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional


def parse_variations(raw: Any) -> List[Dict]:
    if not raw:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []
    return [v for v in raw if isinstance(v, dict) and v]


def parse_int(raw: Any, default: int) -> int:
    """
    Integer prefix parsing: 3, "3", "3.7" and "3 boxes" all give 3; anything
    without a leading integer gives ``default``.
    """
    if isinstance(raw, bool) or raw is None:
        return default
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else default
    text = str(raw).strip()
    digits = ""
    for i, ch in enumerate(text):
        if ch.isdigit() or (i == 0 and ch in "+-"):
            digits += ch
        else:
            break
    try:
        return int(digits)
    except ValueError:
        return default


def parse_quantity(raw: Any, minimum: int, default: int) -> int:
    """Parse then clamp; a parsed 0 counts as unparseable, like a falsy fallback."""
    value = parse_int(raw, default) or default
    return max(minimum, value)


def parse_number(raw: Any) -> Optional[Decimal]:
    """Return a finite Decimal, or None for missing, blank, non-numeric or non-finite input."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str) and not raw.strip():
        return None
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value
