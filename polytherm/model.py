"""
Canonical in-memory data model for polytherm.

These are the shapes shared by the classification core, the file adapters and
the persisted UI state. Coordinates are always stored as ``(lat, lng)`` pairs,
which is the opposite of GeoJSON ordering; adapters are responsible for the swap.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple


Coordinate = Tuple[float, float]
"""Coordinate: (lat, lng) in degrees."""

# Returned whenever no rule matches or classification fails.
FALLBACK_COLOR = "#6b7280"

# Display color of a freshly drawn polygon until its first classification lands.
NEW_POLYGON_COLOR = "#22c55e"

# Rule appended by the rule editor's "add" action.
NEW_RULE_CONDITION = ">= 0"
NEW_RULE_COLOR = FALLBACK_COLOR

DEFAULT_DATA_SOURCE = "temperature_2m"

DEFAULT_CENTER: Coordinate = (52.52, 13.41)  # Berlin
DEFAULT_ZOOM = 3

# Hour indices into a 30-day series starting 15 days in the past.
SERIES_HOURS = 720
DEFAULT_TIME_WINDOW: Tuple[int, int] = (360, 360)


@dataclass
class ColorRule:
    """A threshold condition (e.g. ``">= 10 and < 25"``) and the hex color it selects."""

    condition: str
    color: str

    def to_dict(self) -> Dict[str, str]:
        return {"condition": self.condition, "color": self.color}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "ColorRule":
        return ColorRule(
            condition=str(d.get("condition") or ""),
            color=str(d.get("color") or FALLBACK_COLOR),
        )


def default_color_rules() -> List[ColorRule]:
    """Cold / mild / hot temperature bands assigned to newly drawn polygons."""
    return [
        ColorRule("< 10", "#3b82f6"),
        ColorRule(">= 10 and < 25", "#22c55e"),
        ColorRule(">= 25", "#ef4444"),
    ]


@dataclass
class Polygon:
    id: str
    name: str
    coordinates: List[Coordinate]
    data_source: str = DEFAULT_DATA_SOURCE
    color_rules: List[ColorRule] = field(default_factory=list)
    color: str = NEW_POLYGON_COLOR
    current_value: Optional[float] = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "coordinates": [[lat, lng] for lat, lng in self.coordinates],
            "dataSource": self.data_source,
            "colorRules": [r.to_dict() for r in self.color_rules],
            "color": self.color,
            "currentValue": self.current_value,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Polygon":
        coords = [(float(c[0]), float(c[1])) for c in (d.get("coordinates") or [])]
        value = d.get("currentValue")
        return Polygon(
            id=str(d["id"]),
            name=str(d.get("name") or d["id"]),
            coordinates=coords,
            data_source=str(d.get("dataSource") or DEFAULT_DATA_SOURCE),
            color_rules=[
                ColorRule.from_dict(r)
                for r in (d.get("colorRules") or [])
                if isinstance(r, dict)
            ],
            color=str(d.get("color") or FALLBACK_COLOR),
            current_value=float(value) if value is not None else None,
        )


@dataclass
class PolygonCandidate:
    """A finished drawing (or imported shape) that has not been assigned an identity yet."""

    coordinates: List[Coordinate]
    data_source: str = DEFAULT_DATA_SOURCE
    color_rules: Optional[List[ColorRule]] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive pair of hour indices into a TimeSeries."""

    start: int
    end: int

    @property
    def is_single(self) -> bool:
        return self.start == self.end

    def as_list(self) -> List[int]:
        return [self.start, self.end]


@dataclass(frozen=True)
class TimeSeries:
    """
    Hourly samples as fetched from a data source.

    ``values`` may contain ``None`` where the provider had no reading.
    """

    times: Tuple[str, ...]
    values: Tuple[Optional[float], ...]

    @staticmethod
    def from_values(
        values: Sequence[Optional[float]], times: Optional[Sequence[str]] = None
    ) -> "TimeSeries":
        return TimeSeries(
            times=tuple(times) if times is not None else tuple("" for _ in values),
            values=tuple(values),
        )

    def __len__(self) -> int:
        return len(self.values)


@dataclass
class MapCenter:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}
