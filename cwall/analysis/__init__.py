"""
Geometry assembly

- GeometryAssembler: selected ways + resolved nodes -> LineString records
"""

from .geometry_assembler import GeometryAssembler

__all__ = [
    "GeometryAssembler",
]
