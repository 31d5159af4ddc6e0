"""
Ordered color rules: first matching condition decides a polygon's color.

Rule lists are treated as immutable values. The editing helpers return new
lists so callers can swap a polygon's rules in one assignment while order
is preserved.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional, Sequence

from polytherm.core.conditions import evaluate
from polytherm.model import (
    FALLBACK_COLOR,
    NEW_RULE_COLOR,
    NEW_RULE_CONDITION,
    ColorRule,
)


_HEX_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")


def resolve(value: float, rules: Sequence[ColorRule]) -> str:
    """
    Return the color of the first rule whose condition matches ``value``.

    Falls back to ``FALLBACK_COLOR`` when nothing matches (including an empty
    rule list).

    Example:
        >>> rules = [ColorRule("< 10", "#3b82f6"), ColorRule(">= 10", "#ef4444")]
        >>> resolve(5, rules)
        '#3b82f6'
        >>> resolve(5, [])
        '#6b7280'
    """
    for rule in rules:
        if evaluate(value, rule.condition):
            return rule.color
    return FALLBACK_COLOR


def normalize_hex_color(color: str) -> Optional[str]:
    """
    Validate a ``#RRGGBB`` color and return it lowercased.

    Returns None for anything else (missing '#', 3-digit shorthand, rgba(), ...).
    """
    if not color:
        return None
    s = color.strip()
    if not _HEX_COLOR_RE.match(s):
        return None
    return s.lower()


def parse_rules(data: Any) -> List[ColorRule]:
    """
    Build rules from loosely-typed input (YAML/JSON).

    Accepts a list of ``{"condition": ..., "color": ...}`` mappings or of
    ``"CONDITION=#RRGGBB"`` strings. Raises ValueError on an entry that is
    neither, or whose color is not a 6-digit hex color.
    """
    if data is None:
        return []
    if not isinstance(data, (list, tuple)):
        raise ValueError(f"Color rules must be a list, got {type(data).__name__}")

    rules: List[ColorRule] = []
    for i, entry in enumerate(data):
        if isinstance(entry, ColorRule):
            condition, color = entry.condition, entry.color
        elif isinstance(entry, dict):
            condition = str(entry.get("condition") or "")
            color = str(entry.get("color") or "")
        elif isinstance(entry, str) and "=#" in entry:
            condition, _, hex_part = entry.rpartition("=#")
            color = "#" + hex_part
        else:
            raise ValueError(f"Rule {i}: expected mapping or 'CONDITION=#RRGGBB', got {entry!r}")

        norm = normalize_hex_color(color)
        if norm is None:
            raise ValueError(f"Rule {i}: invalid color {color!r} (expected #RRGGBB)")
        rules.append(ColorRule(condition=condition.strip(), color=norm))
    return rules


def add_rule(rules: Iterable[ColorRule], rule: Optional[ColorRule] = None) -> List[ColorRule]:
    new_rule = rule or ColorRule(NEW_RULE_CONDITION, NEW_RULE_COLOR)
    return [*rules, new_rule]


def update_rule(
    rules: Sequence[ColorRule],
    index: int,
    *,
    condition: Optional[str] = None,
    color: Optional[str] = None,
) -> List[ColorRule]:
    """Return a copy of ``rules`` with the fields given replaced at ``index``."""
    if not 0 <= index < len(rules):
        raise IndexError(f"Rule index {index} out of range (0..{len(rules) - 1})")
    out = list(rules)
    old = out[index]
    out[index] = ColorRule(
        condition=old.condition if condition is None else condition,
        color=old.color if color is None else color,
    )
    return out


def delete_rule(rules: Sequence[ColorRule], index: int) -> List[ColorRule]:
    if not 0 <= index < len(rules):
        raise IndexError(f"Rule index {index} out of range (0..{len(rules) - 1})")
    return [r for i, r in enumerate(rules) if i != index]
