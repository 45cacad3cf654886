"""Multipolygon member roles."""

OUTER_ROLE = "outer"
INNER_ROLE = "inner"

# Roles that contribute boundary geometry. An empty role counts as outer.
AREA_ROLES = frozenset({OUTER_ROLE, INNER_ROLE, ""})

# Roles seen on boundary relations that never contribute to the area.
# Any role outside AREA_ROLES is dropped; these are only named for logging.
INFORMATIONAL_ROLES = frozenset({"admin_centre", "label", "subarea"})
