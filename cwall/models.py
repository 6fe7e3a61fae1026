"""
Data structures for the city wall loader

Dataclasses for the OSM objects and geometries that flow through the
pipeline, plus the pydantic run summary written by the CLI.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


@dataclass
class Point:
    """Represents an OSM node (point)"""
    id: int
    lon: float
    lat: float


@dataclass
class Way:
    """Represents an OSM way (line or closed ring)"""
    id: int
    nodes: List[int]
    tags: Dict[str, str] = field(default_factory=dict)
    
    @property
    def name(self) -> Optional[str]:
        return self.tags.get("name")
    
    def has_tag(self, key: str, value: str) -> bool:
        """True if the way carries key=value"""
        return self.tags.get(key) == value


@dataclass
class Geometry:
    """Ordered (lon, lat) pairs rebuilt for one way"""
    coordinates: List[Tuple[float, float]]
    
    def __len__(self) -> int:
        return len(self.coordinates)
    
    def to_wkt(self, precision: int = 7) -> str:
        """
        Render as LineString text with fixed precision
        
        Pairs are "lon lat", separated by commas without spaces, e.g.
        LineString(7.0000000 50.0000000,7.1000000 50.1000000)
        """
        pairs = ",".join(
            f"{lon:.{precision}f} {lat:.{precision}f}" for lon, lat in self.coordinates
        )
        return f"LineString({pairs})"


@dataclass
class LoadRecord:
    """One row for the destination table"""
    way_id: int
    name: Optional[str]
    geometry: Geometry


class RunSummary(BaseModel):
    """Counts and outcome of a single run"""
    input_path: str
    table: Optional[str] = None
    state: str = "SCANNING_PASS_1"
    ways_found: int = 0
    nodes_referenced: int = 0
    nodes_resolved: int = 0
    ways_assembled: int = 0
    ways_skipped: int = 0
    records_inserted: int = 0
    started_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())
    finished_at: Optional[str] = None
    error: Optional[str] = None
