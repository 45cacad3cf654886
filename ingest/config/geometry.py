"""Geometry constants shared by ring assembly and output."""

# OSM stores coordinates with 7 decimal places; endpoint matching rounds to this
COORDINATE_PRECISION = 7

# A valid ring needs 3 distinct vertices plus the closing vertex
MIN_RING_COORDS = 4

# Output value for relations with nothing to assemble
EMPTY_GEOMETRY = {"type": "GeometryCollection", "geometries": []}
