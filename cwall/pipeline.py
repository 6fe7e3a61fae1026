"""
Main pipeline for loading city walls

  1. Recreate the destination table
  2. Pass 1: select barrier=city_wall ways, collect referenced node ids
  3. Rewind the extract
  4. Pass 2: resolve coordinates of the referenced nodes
  5. Assemble LineStrings, dropping ways with unresolved nodes
  6. Insert all records in one transaction and commit once

Any decode error, duplicate node or database error moves the run to
FAILED and is re-raised; nothing is committed in that case.
"""

from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Tuple
import json
import os

from loguru import logger

from .config import PipelineConfig, get_config
from .models import RunSummary, Way
from .collectors import DatasetCursor, OsmiumCursor, PointResolver, ReferenceSet, WaySelector
from .analysis import GeometryAssembler
from .store import PostgisStore


class PipelineState(str, Enum):
    SCANNING_PASS_1 = "SCANNING_PASS_1"
    REWOUND = "REWOUND"
    SCANNING_PASS_2 = "SCANNING_PASS_2"
    ASSEMBLING = "ASSEMBLING"
    LOADING = "LOADING"
    COMMITTED = "COMMITTED"
    SCANNED = "SCANNED"
    FAILED = "FAILED"


class CityWallPipeline:
    """
    Two-pass extraction of city walls from a PBF extract into PostGIS
    
    Usage:
        pipeline = CityWallPipeline()
        summary = pipeline.run()
        pipeline.save(summary, "output/run.json")
    """
    
    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        cursor_factory: Callable[[str], DatasetCursor] = OsmiumCursor,
        store_factory: Callable = PostgisStore
    ):
        self.config = config or get_config()
        self.cursor_factory = cursor_factory
        self.store_factory = store_factory
        self.state: Optional[PipelineState] = None
        self.summary: Optional[RunSummary] = None
    
    def _transition(self, state: PipelineState):
        logger.debug(f"Pipeline state: {self.state.value if self.state else 'START'} -> {state.value}")
        self.state = state
        self.summary.state = state.value
    
    def _start(self, table: Optional[str]) -> RunSummary:
        self.state = None
        self.summary = RunSummary(input_path=self.config.extract.input_path, table=table)
        return self.summary
    
    def _fail(self, error: Exception):
        self._transition(PipelineState.FAILED)
        self.summary.error = str(error)
        self.summary.finished_at = datetime.utcnow().isoformat()
    
    def run(self) -> RunSummary:
        """
        Run the full load
        
        Returns:
            Summary of the committed run
            
        Raises:
            DecodeError, DuplicateNodeError, StoreError: On any fatal failure
        """
        db = self.config.database
        summary = self._start(db.table)
        
        logger.info(f"Loading {self.config.extract.input_path} into {db.dbname}.{db.table}")
        
        try:
            with self.store_factory(db) as store:
                store.reset_schema()
                with self.cursor_factory(self.config.extract.input_path) as cursor:
                    ways, references = self._scan(cursor)
                self._load(store, ways, references)
        except Exception as e:
            self._fail(e)
            raise
        
        summary.finished_at = datetime.utcnow().isoformat()
        logger.info(
            f"Inserted {summary.records_inserted} city walls "
            f"({summary.ways_skipped} skipped with incomplete geometry)"
        )
        return summary
    
    def scan(self) -> RunSummary:
        """
        Dry run: both passes and assembly, without touching the database
        """
        summary = self._start(None)
        
        try:
            with self.cursor_factory(self.config.extract.input_path) as cursor:
                ways, references = self._scan(cursor)
            self._transition(PipelineState.ASSEMBLING)
            assembler = GeometryAssembler(references, self.config.extract)
            for _ in assembler.assemble_all(ways):
                pass
            summary.ways_assembled = assembler.assembled
            summary.ways_skipped = assembler.skipped
        except Exception as e:
            self._fail(e)
            raise
        
        self._transition(PipelineState.SCANNED)
        summary.finished_at = datetime.utcnow().isoformat()
        logger.info(
            f"{summary.ways_assembled} city walls would be loaded, "
            f"{summary.ways_skipped} skipped with incomplete geometry"
        )
        return summary
    
    def _scan(self, cursor: DatasetCursor) -> Tuple[List[Way], ReferenceSet]:
        """Pass 1, rewind, pass 2"""
        self._transition(PipelineState.SCANNING_PASS_1)
        selector = WaySelector(self.config.extract)
        ways = selector.select(cursor)
        references = selector.references
        self.summary.ways_found = len(ways)
        self.summary.nodes_referenced = len(references)
        
        cursor.rewind()
        self._transition(PipelineState.REWOUND)
        
        self._transition(PipelineState.SCANNING_PASS_2)
        self.summary.nodes_resolved = PointResolver(references).resolve(cursor)
        return ways, references
    
    def _load(self, store, ways: List[Way], references: ReferenceSet):
        """Assemble records and insert them inside one transaction"""
        self._transition(PipelineState.ASSEMBLING)
        assembler = GeometryAssembler(references, self.config.extract)
        
        with store.transaction() as tx:
            self._transition(PipelineState.LOADING)
            for record in assembler.assemble_all(ways):
                tx.insert(record.name, assembler.to_wkt(record))

        self.summary.ways_assembled = assembler.assembled
        self.summary.ways_skipped = assembler.skipped
        self.summary.records_inserted = tx.inserted
        self._transition(PipelineState.COMMITTED)
    
    def save(self, summary: RunSummary, output_path: str) -> str:
        """Save run summary to JSON file"""
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(summary.model_dump(), f, indent=2, ensure_ascii=False)
        
        logger.info(f"Saved run summary to {output_path}")
        return output_path
