"""Tag tables deciding whether a closed way is an area or a ring-shaped line."""

# Closed ways carrying any of these keys are areas, unless excepted below
AREA_KEYS: frozenset[str] = frozenset({
    "aeroway",
    "amenity",
    "building",
    "building:part",
    "harbour",
    "historic",
    "landuse",
    "leisure",
    "man_made",
    "military",
    "natural",
    "office",
    "place",
    "power",
    "public_transport",
    "shop",
    "sport",
    "tourism",
    "water",
    "waterway",
    "wetland",
})

# Key/value pairs that stay linear even when the way is closed
AREA_TAG_EXCEPTIONS: dict[str, frozenset[str]] = {
    "natural": frozenset({"coastline", "cliff", "ridge", "arete", "tree_row"}),
    "man_made": frozenset({"cutline", "embankment", "pipeline"}),
    "power": frozenset({"cable", "line", "minor_line"}),
    "waterway": frozenset({"canal", "ditch", "drain", "river", "stream"}),
    "leisure": frozenset({"track", "slipway"}),
}
