"""
Threshold condition language.

A condition is a short, human-typed expression compared against one number:

    "< 10"
    ">= 25"
    ">= 10 and < 25"
    "= 21.5"          (approximate: |value - 21.5| < 0.1)

Conditions are case-insensitive and whitespace-trimmed. Clauses joined by
``" and "`` must all hold. There is no ``or`` and no grouping.

Nothing in this module raises for bad input: an unrecognised operator, a
missing threshold or any other malformed text simply does not match.
"""

from __future__ import annotations

import math
import re
from typing import Callable, List, Optional, Tuple


# Approximate-equality tolerance for "=". Absolute, independent of magnitude.
EQUALITY_TOLERANCE = 0.1

_AND = " and "

# Leading decimal number, the way a "parse leading float" routine reads it:
# optional sign, digits with optional fraction (or a bare fraction), optional exponent.
_LEADING_FLOAT_RE = re.compile(
    r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII
)

Comparator = Callable[[float, float], bool]

# Two-character operators first so ">=" never reads as ">" followed by "=...".
_OPERATORS: Tuple[Tuple[str, Comparator], ...] = (
    (">=", lambda v, t: v >= t),
    ("<=", lambda v, t: v <= t),
    (">", lambda v, t: v > t),
    ("<", lambda v, t: v < t),
    ("=", lambda v, t: abs(v - t) < EQUALITY_TOLERANCE),
)


def parse_leading_float(text: str) -> float:
    """
    Parse the numeric prefix of ``text``; trailing characters are ignored.

    Returns NaN when no number can be read.

    Example:
        >>> parse_leading_float(" 10.5abc")
        10.5
        >>> parse_leading_float("-3.2")
        -3.2
        >>> math.isnan(parse_leading_float("warm"))
        True
    """
    s = (text or "").lstrip()
    m = _LEADING_FLOAT_RE.match(s)
    if m:
        return float(m.group(0))
    return math.nan


def _normalize(condition: object) -> str:
    if condition is None:
        return ""
    return str(condition).lower().strip()


def _split_clauses(condition: str) -> List[str]:
    return [part.strip() for part in condition.split(_AND)]


def _parse_clause(clause: str) -> Optional[Tuple[Comparator, float]]:
    for symbol, compare in _OPERATORS:
        if clause.startswith(symbol):
            return compare, parse_leading_float(clause[len(symbol):])
    return None


def evaluate(value: float, condition: str) -> bool:
    """
    Return True when ``value`` satisfies ``condition``.

    Comparisons against an unparseable threshold (NaN) are always False, as is
    any clause without a recognised operator.
    """
    try:
        clean = _normalize(condition)
        if _AND in clean:
            return all(evaluate(value, part) for part in _split_clauses(clean))

        parsed = _parse_clause(clean)
        if parsed is None:
            return False
        compare, threshold = parsed
        return bool(compare(float(value), threshold))
    except (TypeError, ValueError, OverflowError):
        return False


def is_valid_condition(condition: str) -> bool:
    """
    True when every clause has a known operator and a readable threshold.

    ``evaluate`` never needs this; it is for warning users about rules that
    can never match.
    """
    clean = _normalize(condition)
    if not clean:
        return False
    for clause in _split_clauses(clean):
        parsed = _parse_clause(clause)
        if parsed is None or math.isnan(parsed[1]):
            return False
    return True
