"""
Shared fixtures: an in-memory cursor and a fake destination store
"""

import sys
from contextlib import contextmanager
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from cwall.collectors import DatasetCursor
from cwall.config import PipelineConfig
from cwall.models import Point, Way


CITY_WALL = {"barrier": "city_wall"}


class ListCursor(DatasetCursor):
    """Cursor over in-memory ways and points"""
    
    def __init__(self, ways=(), points=()):
        super().__init__()
        self.ways = list(ways)
        self.points = list(points)
        self.closed = False
        self.way_passes = 0
        self.point_passes = 0
    
    def _read_ways(self):
        self.way_passes += 1
        return iter(self.ways)
    
    def _read_points(self):
        self.point_passes += 1
        return iter(self.points)
    
    def close(self):
        self.closed = True


class FakeTransaction:
    def __init__(self, store):
        self.store = store
        self.pending = []
        self.inserted = 0
    
    def insert(self, name, geometry_wkt):
        if self.store.fail_on_insert is not None and self.inserted == self.store.fail_on_insert:
            raise RuntimeError("insert failed")
        self.pending.append((name, geometry_wkt))
        self.inserted += 1


class FakeStore:
    """Table-like store that only keeps rows once a transaction commits"""
    
    def __init__(self, fail_on_insert=None):
        self.rows = [("stale", "LineString(0 0,1 1)")]
        self.schema_resets = 0
        self.transactions = 0
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.fail_on_insert = fail_on_insert
    
    def __enter__(self):
        return self
    
    def __exit__(self, exc_type, exc, tb):
        self.closed = True
        return False
    
    def reset_schema(self):
        self.schema_resets += 1
        self.rows = []
    
    @contextmanager
    def transaction(self):
        self.transactions += 1
        tx = FakeTransaction(self)
        try:
            yield tx
        except BaseException:
            self.rollbacks += 1
            raise
        self.rows.extend(tx.pending)
        self.commits += 1


def wall(way_id, nodes, **tags):
    return Way(id=way_id, nodes=list(nodes), tags={**CITY_WALL, **tags})


def point(node_id, lon, lat):
    return Point(id=node_id, lon=lon, lat=lat)


@pytest.fixture
def config():
    return PipelineConfig()


@pytest.fixture
def scenario_points():
    return [
        point(10, 7.0, 50.0),
        point(11, 7.1, 50.1),
        point(12, 7.2, 50.2),
    ]


@pytest.fixture
def make_pipeline(config):
    """Build a pipeline wired to a ListCursor and a FakeStore"""
    from cwall.pipeline import CityWallPipeline
    
    def _make(ways, points, store=None):
        cursor = ListCursor(ways, points)
        store = store or FakeStore()
        pipeline = CityWallPipeline(
            config,
            cursor_factory=lambda path: cursor,
            store_factory=lambda db: store,
        )
        return pipeline, cursor, store
    
    return _make
