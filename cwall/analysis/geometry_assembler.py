"""
Rebuild way geometries from resolved node coordinates

A way is only emitted when every node it references was resolved; ways
that touch the edge of the extract are dropped, not patched.
"""

from typing import Iterable, Iterator, Optional

from loguru import logger

from ..collectors.osm.references import ReferenceSet
from ..config import ExtractConfig
from ..models import Geometry, LoadRecord, Way


class GeometryAssembler:
    """Turns selected ways into load records"""
    
    def __init__(self, references: ReferenceSet, extract_config: Optional[ExtractConfig] = None):
        self.references = references
        self.config = extract_config or ExtractConfig()
        self.assembled = 0
        self.skipped = 0
    
    def build_geometry(self, way: Way) -> Optional[Geometry]:
        """
        Map a way's node ids to coordinates in order
        
        Returns None if any node is unresolved, or if the way has fewer than
        two nodes and so cannot be a line string.
        """
        if len(way.nodes) < 2:
            return None
        
        coordinates = []
        for node_id in way.nodes:
            coord = self.references.get(node_id)
            if coord is None:
                return None
            coordinates.append(coord)
        return Geometry(coordinates)
    
    def assemble(self, way: Way) -> Optional[LoadRecord]:
        geometry = self.build_geometry(way)
        if geometry is None:
            self.skipped += 1
            logger.debug(f"Skipping way {way.id}: incomplete geometry")
            return None
        
        self.assembled += 1
        return LoadRecord(
            way_id=way.id,
            name=way.tags.get(self.config.name_tag),
            geometry=geometry,
        )
    
    def assemble_all(self, ways: Iterable[Way]) -> Iterator[LoadRecord]:
        """Records for every complete way, in selection order"""
        for way in ways:
            record = self.assemble(way)
            if record is not None:
                yield record
    
    def to_wkt(self, record: LoadRecord) -> str:
        return record.geometry.to_wkt(self.config.coordinate_precision)
