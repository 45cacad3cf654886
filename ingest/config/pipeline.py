"""Pipeline defaults for the geometry ingest driver."""

import os

DEFAULT_PARTITIONS = 1

# Capped at 8 to be reasonable on shared machines
DEFAULT_WORKERS = min(8, os.cpu_count() or 2)

# Relation types whose members are assembled into areas
RELATION_TYPES = frozenset({"multipolygon", "boundary"})

# Stage names used as cache keys
STAGE_PREPARED_NODES = "prepared_nodes"
STAGE_NODE_GEOMS = "node_geoms"
STAGE_WAY_GEOMS = "way_geoms"
STAGE_RELATION_GEOMS = "relation_geoms"
