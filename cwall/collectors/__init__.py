"""
Data collectors for the city wall loader

- DatasetCursor / OsmiumCursor: sequential reads over a PBF extract
- WaySelector: pass 1, target ways and the node ids they reference
- PointResolver: pass 2, coordinates for the referenced nodes
"""

from .osm import DatasetCursor, OsmiumCursor, ReferenceSet, WaySelector, PointResolver

__all__ = [
    "DatasetCursor",
    "OsmiumCursor",
    "ReferenceSet",
    "WaySelector",
    "PointResolver",
]
