"""polytherm - rule-based temperature classification for map polygons."""

__version__ = "0.1.0"
__description__ = "Color map polygons by threshold rules over hourly temperature series"

from polytherm.cli import app, main

__all__ = ["app", "main", "__version__"]
