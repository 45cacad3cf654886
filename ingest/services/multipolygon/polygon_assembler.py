"""Combine outer rings and their holes into the output geometry."""

from services.multipolygon.types import ClassifiedRing
from services.utils.geojson import make_polygon_or_multi


def assemble_polygons(
    outers: list[ClassifiedRing],
    holes_by_outer: dict[int, list[ClassifiedRing]],
) -> dict:
    """
    Build the output geometry from resolved rings.

    Zero outers give the empty geometry, one outer a Polygon, more a
    MultiPolygon. Polygons are ordered by their smallest vertex (then
    area) and holes by their smallest vertex, so identical input always
    serializes identically.

    Args:
        outers: Outer rings
        holes_by_outer: Index into ``outers`` -> assigned holes

    Returns:
        GeoJSON geometry dict
    """
    order = sorted(range(len(outers)), key=lambda i: (outers[i].min_vertex, abs(outers[i].area)))

    polygons = []
    for i in order:
        holes = sorted(holes_by_outer.get(i, []), key=lambda h: (h.min_vertex, abs(h.area)))
        polygons.append([outers[i].coords] + [hole.coords for hole in holes])

    return make_polygon_or_multi(polygons)
