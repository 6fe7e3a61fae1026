"""
Dataset cursor over an OSM extract

The pipeline pulls objects one at a time. pyosmium may decode PBF blocks on
its own worker threads, but objects are handed over on the consuming thread
only.
"""

from abc import ABC, abstractmethod
from typing import Iterator
import os

import osmium
from loguru import logger

from ...errors import CursorError, DecodeError
from ...models import Point, Way


class DatasetCursor(ABC):
    """
    Sequential reader that can be rewound exactly once
    
    Each call to iter_ways() / iter_points() is one pass from the start of
    the dataset. The first pass may be started directly; any further pass
    needs a prior rewind().
    """
    
    def __init__(self):
        self._passes_started = 0
        self._rewound = False
    
    def _begin_pass(self):
        if self._passes_started > 0 and not self._rewound:
            raise CursorError("Cursor must be rewound before another pass")
        if self._passes_started > 1:
            raise CursorError("Cursor supports only two passes")
        self._passes_started += 1
    
    def rewind(self):
        """Reset to the start of the dataset (allowed once, after a pass)"""
        if self._rewound:
            raise CursorError("Cursor can only be rewound once")
        if self._passes_started == 0:
            raise CursorError("Nothing to rewind, no pass has been read yet")
        self._rewound = True
        logger.debug("Dataset cursor rewound")
    
    def iter_ways(self) -> Iterator[Way]:
        """One pass yielding every way in file order"""
        self._begin_pass()
        return self._read_ways()
    
    def iter_points(self) -> Iterator[Point]:
        """One pass yielding every node in file order"""
        self._begin_pass()
        return self._read_points()
    
    @abstractmethod
    def _read_ways(self) -> Iterator[Way]:
        ...
    
    @abstractmethod
    def _read_points(self) -> Iterator[Point]:
        ...
    
    def close(self):
        pass
    
    def __enter__(self):
        return self
    
    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class OsmiumCursor(DatasetCursor):
    """
    Cursor backed by pyosmium's FileProcessor
    
    Entity kinds are filtered per pass so libosmium skips decoding nodes on
    the way pass and ways on the node pass. pyosmium objects are only valid
    during a single iteration step, so they are copied into Way / Point.
    """
    
    def __init__(self, path: str):
        super().__init__()
        if not os.path.exists(path):
            raise DecodeError(f"Extract not found: {path}")
        self.path = path
    
    def _read_ways(self) -> Iterator[Way]:
        for obj in self._objects(osmium.osm.WAY):
            if obj.is_way():
                yield Way(
                    id=obj.id,
                    nodes=[ref.ref for ref in obj.nodes],
                    tags={tag.k: tag.v for tag in obj.tags},
                )
    
    def _read_points(self) -> Iterator[Point]:
        for obj in self._objects(osmium.osm.NODE):
            if obj.is_node() and obj.location.valid():
                yield Point(id=obj.id, lon=obj.location.lon, lat=obj.location.lat)
    
    def _objects(self, entities) -> Iterator:
        logger.debug(f"Opening {self.path}")
        try:
            for obj in osmium.FileProcessor(self.path, entities):
                yield obj
        except (RuntimeError, OSError) as e:
            raise DecodeError(f"Failed to decode {self.path}: {e}") from e
