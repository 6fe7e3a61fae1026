"""
First pass: select the target ways

Keeps every way tagged with the configured key=value and registers the
node ids it references.
"""

from typing import List, Optional

from loguru import logger

from .cursor import DatasetCursor
from .references import ReferenceSet
from ...config import ExtractConfig
from ...models import Way


class WaySelector:
    """Collects tagged ways and their node references from one pass"""
    
    def __init__(self, extract_config: Optional[ExtractConfig] = None):
        self.config = extract_config or ExtractConfig()
        self.ways: List[Way] = []
        self.references = ReferenceSet()
    
    def matches(self, way: Way) -> bool:
        return way.has_tag(self.config.tag_key, self.config.tag_value)
    
    def select(self, cursor: DatasetCursor) -> List[Way]:
        """
        Run the way pass and freeze the reference set
        
        Args:
            cursor: Cursor positioned at the start of the dataset
            
        Returns:
            Selected ways in file order
            
        Raises:
            DecodeError: If the extract cannot be read
        """
        logger.info(f"Searching for {self.config.tag_key}={self.config.tag_value} ways ...")
        
        for way in cursor.iter_ways():
            if self.matches(way):
                self.references.add_all(way.nodes)
                self.ways.append(way)
        
        self.references.freeze()
        
        logger.info(
            f"Found {len(self.ways)} city walls in total, "
            f"referencing {len(self.references)} nodes."
        )
        return self.ways
