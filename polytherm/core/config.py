"""
Configuration for polytherm.

Settings are read from a YAML file: ``polytherm_config.yaml`` (or ``.yml``) in
the working directory, or an explicit path. Every key is optional; missing
keys keep the built-in defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from polytherm.core.normalization import normalize_coordinate
from polytherm.core.rules import parse_rules
from polytherm.model import (
    DEFAULT_CENTER,
    DEFAULT_TIME_WINDOW,
    DEFAULT_ZOOM,
    SERIES_HOURS,
    ColorRule,
    Coordinate,
    default_color_rules,
)


CONFIG_FILENAMES = ("polytherm_config.yaml", "polytherm_config.yml")

_KNOWN_KEYS = frozenset(
    [
        "default_rules",
        "default_time_window",
        "default_center",
        "default_zoom",
        "series_hours",
        "synthetic_seed",
    ]
)


class PolythermConfig:
    """Runtime settings with user overrides."""

    def __init__(self, config_file: Optional[Path] = None):
        self.default_rules: List[ColorRule] = default_color_rules()
        self.default_time_window: Tuple[int, int] = DEFAULT_TIME_WINDOW
        self.default_center: Coordinate = DEFAULT_CENTER
        self.default_zoom: int = DEFAULT_ZOOM
        self.series_hours: int = SERIES_HOURS
        self.synthetic_seed: Optional[int] = None
        self.config_file: Optional[Path] = None

        if config_file and config_file.exists():
            self.load_user_config(config_file)

    def load_user_config(self, config_file: Path) -> None:
        """
        Load user configuration from a YAML file.

        Format:
        default_rules:
          - {condition: "< 0", color: "#1e3a8a"}
          - {condition: ">= 0", color: "#f97316"}
        default_time_window: [360, 383]
        default_center: {lat: 48.85, lng: 2.35}

        Raises:
            ValueError: on invalid YAML or an invalid value
        """
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")

        if user_config is None:
            user_config = {}
        if not isinstance(user_config, dict):
            raise ValueError("Config file must contain a mapping at the top level")

        unknown = sorted(set(user_config) - _KNOWN_KEYS)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

        if "default_rules" in user_config:
            self.default_rules = parse_rules(user_config["default_rules"])

        if "default_time_window" in user_config:
            window = user_config["default_time_window"]
            if not isinstance(window, (list, tuple)) or len(window) != 2:
                raise ValueError("default_time_window must be a [start, end] pair")
            try:
                self.default_time_window = (int(window[0]), int(window[1]))
            except (TypeError, ValueError):
                raise ValueError(f"default_time_window must hold integers, got {window!r}")

        if "default_center" in user_config:
            center = user_config["default_center"] or {}
            try:
                self.default_center = normalize_coordinate(
                    float(center["lat"]), float(center["lng"])
                )
            except (KeyError, TypeError, ValueError):
                raise ValueError("default_center must be a mapping with numeric lat and lng")

        if "default_zoom" in user_config:
            self.default_zoom = _positive_int(user_config["default_zoom"], "default_zoom")

        if "series_hours" in user_config:
            self.series_hours = _positive_int(user_config["series_hours"], "series_hours")

        if "synthetic_seed" in user_config:
            seed = user_config["synthetic_seed"]
            self.synthetic_seed = None if seed is None else int(seed)

        self.config_file = config_file

    def export_template(self, output_path: Path) -> None:
        """Write a commented configuration template."""
        rules_yaml = "\n".join(
            f'  - {{condition: "{r.condition}", color: "{r.color}"}}'
            for r in self.default_rules
        )
        lat, lng = self.default_center
        start, end = self.default_time_window
        yaml_content = f"""# =============================================================================
# polytherm configuration
# =============================================================================

# Rules given to polygons that arrive without their own.
# Evaluated top to bottom; the first matching condition picks the color.
# Conditions: "< N", "<= N", "> N", ">= N", "= N" (within 0.1), joined with "and".
default_rules:
{rules_yaml}

# Hour indices [start, end] into the series (inclusive). Equal values select one hour.
default_time_window: [{start}, {end}]

default_center: {{lat: {lat}, lng: {lng}}}
default_zoom: {self.default_zoom}

# Length of generated series when no series file is given.
series_hours: {self.series_hours}

# Fix the generator seed for reproducible output (null = random).
synthetic_seed: {'null' if self.synthetic_seed is None else self.synthetic_seed}
"""
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(yaml_content)

    def get_config_summary(self) -> Dict[str, Any]:
        return {
            "config_file": str(self.config_file) if self.config_file else None,
            "default_rules_count": len(self.default_rules),
            "default_time_window": list(self.default_time_window),
            "default_center": list(self.default_center),
            "default_zoom": self.default_zoom,
            "series_hours": self.series_hours,
            "synthetic_seed": self.synthetic_seed,
        }


def _positive_int(value: Any, key: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    if n <= 0:
        raise ValueError(f"{key} must be positive, got {n}")
    return n


def load_config(config_file: Optional[Path] = None) -> PolythermConfig:
    """
    Load configuration.

    Args:
        config_file: Optional path to a YAML config file. If None, looks for
                    'polytherm_config.yaml' / '.yml' in the current directory.
    """
    if config_file is None:
        for name in CONFIG_FILENAMES:
            candidate = Path(name)
            if candidate.exists():
                config_file = candidate
                break

    return PolythermConfig(config_file)
