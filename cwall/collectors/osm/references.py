"""
Reference set: node id -> coordinate slot

Built during the way pass, frozen, then filled in during the node pass.
Coordinates live in two flat double arrays indexed by slot, with NaN
marking a slot that has not been resolved yet.
"""

from array import array
from enum import Enum
import math
from typing import Dict, Iterable, Iterator, Optional, Tuple

from ...errors import PipelineStateError


class ResolveOutcome(Enum):
    RESOLVED = "resolved"
    NOT_REFERENCED = "not_referenced"
    ALREADY_RESOLVED = "already_resolved"


class ReferenceSet:
    """Node ids needed by the selected ways and their (optional) coordinates"""
    
    def __init__(self):
        self._slots: Dict[int, int] = {}
        self._lons = array("d")
        self._lats = array("d")
        self._frozen = False
        self.resolved_count = 0
    
    def __len__(self) -> int:
        return len(self._slots)
    
    def __contains__(self, node_id: int) -> bool:
        return node_id in self._slots
    
    def __iter__(self) -> Iterator[int]:
        return iter(self._slots)
    
    @property
    def frozen(self) -> bool:
        return self._frozen
    
    def add_all(self, node_ids: Iterable[int]):
        """Register node ids as needed; ids already present are left alone"""
        if self._frozen:
            raise PipelineStateError("Reference set is frozen, no ids can be added")
        for node_id in node_ids:
            if node_id not in self._slots:
                self._slots[node_id] = len(self._lons)
                self._lons.append(math.nan)
                self._lats.append(math.nan)
    
    def freeze(self):
        """Fix the key set; only coordinates may change afterwards"""
        self._frozen = True
    
    def resolve(self, node_id: int, lon: float, lat: float) -> ResolveOutcome:
        """
        Store the coordinate of a referenced node
        
        Returns ALREADY_RESOLVED without touching the slot if the id was
        resolved before; the caller decides what that means.
        """
        slot = self._slots.get(node_id)
        if slot is None:
            return ResolveOutcome.NOT_REFERENCED
        if not math.isnan(self._lons[slot]):
            return ResolveOutcome.ALREADY_RESOLVED
        self._lons[slot] = lon
        self._lats[slot] = lat
        self.resolved_count += 1
        return ResolveOutcome.RESOLVED
    
    def get(self, node_id: int) -> Optional[Tuple[float, float]]:
        """(lon, lat) of a node, or None if unknown or unresolved"""
        slot = self._slots.get(node_id)
        if slot is None:
            return None
        lon = self._lons[slot]
        if math.isnan(lon):
            return None
        return lon, self._lats[slot]
    
    @property
    def unresolved_count(self) -> int:
        return len(self._slots) - self.resolved_count
