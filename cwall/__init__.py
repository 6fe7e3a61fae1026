"""
City wall loader

Extracts barrier=city_wall ways from an OSM PBF extract and loads them
into PostGIS as line strings.
"""

__version__ = "1.0.0"
