"""QuestMap checklist → map generation engine."""

from questmap.engine.config import PipelineConfig
from questmap.engine.context import GenerationContext
from questmap.engine.orchestrator import ChunkResult, MapOrchestrator
from questmap.engine.pipeline import MapPipeline, create_pipeline, generate_maps_for_checklist

__all__ = [
    "PipelineConfig",
    "GenerationContext",
    "ChunkResult",
    "MapOrchestrator",
    "MapPipeline",
    "create_pipeline",
    "generate_maps_for_checklist",
]
