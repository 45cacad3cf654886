"""
Application configuration package.

Re-exports all configuration values from sub-modules so that
``from config import X`` works for every setting.

Configuration is split into focused modules:
- paths: BASE_DIR, CACHE_DIR, OUTPUT_DIR, LOG_LEVEL
- roles: OUTER_ROLE, INNER_ROLE, AREA_ROLES, INFORMATIONAL_ROLES
- geometry: COORDINATE_PRECISION, MIN_RING_COORDS, EMPTY_GEOMETRY
- areas: AREA_KEYS, AREA_TAG_EXCEPTIONS
- pipeline: DEFAULT_PARTITIONS, DEFAULT_WORKERS, RELATION_TYPES, stage names
"""

# Paths & logging
from config.paths import BASE_DIR, CACHE_DIR, OUTPUT_DIR, LOG_LEVEL

# Relation member roles
from config.roles import (
    OUTER_ROLE, INNER_ROLE, AREA_ROLES, INFORMATIONAL_ROLES,
)

# Geometry constants
from config.geometry import (
    COORDINATE_PRECISION, MIN_RING_COORDS, EMPTY_GEOMETRY,
)

# Area detection for closed ways
from config.areas import AREA_KEYS, AREA_TAG_EXCEPTIONS

# Pipeline defaults
from config.pipeline import (
    DEFAULT_PARTITIONS, DEFAULT_WORKERS, RELATION_TYPES,
    STAGE_PREPARED_NODES, STAGE_NODE_GEOMS, STAGE_WAY_GEOMS, STAGE_RELATION_GEOMS,
)
