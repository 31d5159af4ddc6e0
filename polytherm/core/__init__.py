"""Classification core: conditions, rules, aggregation, caching and colorization."""

__all__ = [
    "conditions",
    "rules",
    "aggregate",
    "cache",
    "colorizer",
    "state",
    "config",
]
