"""
Second pass: resolve node coordinates

Fills the reference set from the node stream. A referenced id that shows up
twice means the extract breaks the unique-id assumption and the run stops.
"""

from loguru import logger

from .cursor import DatasetCursor
from .references import ReferenceSet, ResolveOutcome
from ...errors import DuplicateNodeError, PipelineStateError


class PointResolver:
    """Resolves referenced node ids to (lon, lat)"""
    
    def __init__(self, references: ReferenceSet):
        self.references = references
    
    def resolve(self, cursor: DatasetCursor) -> int:
        """
        Run the node pass
        
        Args:
            cursor: Cursor rewound after the way pass
            
        Returns:
            Number of nodes resolved
            
        Raises:
            PipelineStateError: If the reference set is not frozen yet
            DuplicateNodeError: If a referenced node id occurs twice
            DecodeError: If the extract cannot be read
        """
        if not self.references.frozen:
            raise PipelineStateError("Reference set must be frozen before resolving nodes")
        
        logger.info("Searching for city wall nodes ...")
        
        for point in cursor.iter_points():
            outcome = self.references.resolve(point.id, point.lon, point.lat)
            if outcome is ResolveOutcome.ALREADY_RESOLVED:
                raise DuplicateNodeError(point.id)
        
        resolved = self.references.resolved_count
        logger.info(f"Found {resolved} city wall nodes in total.")
        if self.references.unresolved_count:
            logger.info(f"{self.references.unresolved_count} referenced nodes are not in the extract")
        return resolved
