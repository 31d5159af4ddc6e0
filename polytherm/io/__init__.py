"""File adapters (GeoJSON polygons, series documents)."""
