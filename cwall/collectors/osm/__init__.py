"""
OpenStreetMap extract reading

Modular two-pass reader with separate components for:
- Cursor: pyosmium access to the PBF file, rewindable once
- References: node id -> coordinate table shared by both passes
- Selector: first pass over ways
- Resolver: second pass over nodes
"""

from .cursor import DatasetCursor, OsmiumCursor
from .references import ReferenceSet, ResolveOutcome
from .selector import WaySelector
from .resolver import PointResolver

__all__ = [
    "DatasetCursor",
    "OsmiumCursor",
    "ReferenceSet",
    "ResolveOutcome",
    "WaySelector",
    "PointResolver",
]
