"""
End-to-end pipeline tests with an in-memory cursor and a fake store
"""

import json

import pytest

from cwall.errors import DecodeError, DuplicateNodeError
from cwall.models import Way
from cwall.pipeline import PipelineState

from conftest import FakeStore, point, wall


SCENARIO_A_WKT = (
    "LineString(7.0000000 50.0000000,7.1000000 50.1000000,7.2000000 50.2000000)"
)


def test_single_wall_is_loaded(make_pipeline, scenario_points):
    pipeline, cursor, store = make_pipeline([wall(1, [10, 11, 12])], scenario_points)
    
    summary = pipeline.run()
    
    assert store.rows == [(None, SCENARIO_A_WKT)]
    assert store.schema_resets == 1
    assert store.commits == 1
    assert summary.state == "COMMITTED"
    assert summary.ways_found == 1
    assert summary.nodes_referenced == 3
    assert summary.nodes_resolved == 3
    assert summary.records_inserted == 1
    assert pipeline.state is PipelineState.COMMITTED


def test_wall_with_missing_node_is_not_loaded(make_pipeline, scenario_points):
    pipeline, cursor, store = make_pipeline([wall(1, [10, 11, 12])], scenario_points[:2])
    
    summary = pipeline.run()
    
    assert store.rows == []
    assert store.commits == 1
    assert summary.records_inserted == 0
    assert summary.ways_skipped == 1


def test_shared_node_is_used_by_both_walls(make_pipeline, scenario_points):
    ways = [wall(1, [10, 11], name="Nord"), wall(2, [12, 10], name="Süd")]
    pipeline, cursor, store = make_pipeline(ways, scenario_points)
    
    summary = pipeline.run()
    
    assert summary.nodes_referenced == 3
    assert summary.nodes_resolved == 3
    assert store.rows == [
        ("Nord", "LineString(7.0000000 50.0000000,7.1000000 50.1000000)"),
        ("Süd", "LineString(7.2000000 50.2000000,7.0000000 50.0000000)"),
    ]


def test_duplicate_node_aborts_before_any_insert(make_pipeline, scenario_points):
    points = scenario_points + [point(10, 7.0, 50.0)]
    pipeline, cursor, store = make_pipeline([wall(1, [10, 11, 12])], points)
    
    with pytest.raises(DuplicateNodeError):
        pipeline.run()
    
    assert store.schema_resets == 1
    assert store.rows == []
    assert store.transactions == 0
    assert store.commits == 0
    assert store.closed
    assert cursor.closed
    assert pipeline.state is PipelineState.FAILED
    assert "Duplicate node ID 10" in pipeline.summary.error


def test_insert_failure_rolls_back_everything(make_pipeline, scenario_points):
    ways = [wall(1, [10, 11]), wall(2, [11, 12])]
    store = FakeStore(fail_on_insert=1)
    pipeline, cursor, store = make_pipeline(ways, scenario_points, store=store)
    
    with pytest.raises(RuntimeError, match="insert failed"):
        pipeline.run()
    
    assert store.rows == []
    assert store.commits == 0
    assert store.rollbacks == 1
    assert pipeline.state is PipelineState.FAILED


def test_decode_error_fails_run(config, scenario_points):
    from cwall.pipeline import CityWallPipeline
    
    def broken_cursor(path):
        raise DecodeError(f"Failed to decode {path}")
    
    store = FakeStore()
    pipeline = CityWallPipeline(config, cursor_factory=broken_cursor, store_factory=lambda db: store)
    
    with pytest.raises(DecodeError):
        pipeline.run()
    assert store.commits == 0
    assert store.closed
    assert pipeline.summary.state == "FAILED"


def test_untagged_ways_never_reach_the_store(make_pipeline, scenario_points):
    ways = [
        Way(id=7, nodes=[10, 11], tags={"highway": "footway", "name": "Wallweg"}),
        wall(1, [11, 12]),
    ]
    pipeline, cursor, store = make_pipeline(ways, scenario_points)
    
    summary = pipeline.run()
    
    assert summary.ways_found == 1
    assert summary.nodes_referenced == 2
    assert [name for name, _ in store.rows] == [None]


def test_each_pass_reads_the_dataset_once(make_pipeline, scenario_points):
    pipeline, cursor, store = make_pipeline([wall(1, [10, 11, 12])], scenario_points)
    pipeline.run()
    
    assert cursor.way_passes == 1
    assert cursor.point_passes == 1


def test_scan_does_not_touch_the_store(make_pipeline, scenario_points):
    pipeline, cursor, store = make_pipeline(
        [wall(1, [10, 11, 12]), wall(2, [12, 13])], scenario_points
    )
    
    summary = pipeline.scan()
    
    assert summary.state == "SCANNED"
    assert summary.ways_assembled == 1
    assert summary.ways_skipped == 1
    assert store.schema_resets == 0
    assert store.rows == [("stale", "LineString(0 0,1 1)")]


def test_save_writes_summary_json(make_pipeline, scenario_points, tmp_path):
    pipeline, cursor, store = make_pipeline([wall(1, [10, 11, 12])], scenario_points)
    summary = pipeline.run()
    
    output = pipeline.save(summary, str(tmp_path / "reports" / "run.json"))
    
    with open(output, encoding="utf-8") as f:
        data = json.load(f)
    assert data["state"] == "COMMITTED"
    assert data["records_inserted"] == 1
    assert data["table"] == "cwalls"
