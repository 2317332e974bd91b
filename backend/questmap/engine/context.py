"""GenerationContext — the mutable state of one consultation's map generation run."""

from __future__ import annotations

from dataclasses import dataclass, field

from questmap.engine.orchestrator import ChunkResult
from questmap.engine.signals import ChecklistSignals
from questmap.models.checklist import ChecklistItem, MapChunk, ThemeProfile


@dataclass
class GenerationContext:
    consultation_id: str
    items: list[ChecklistItem]
    raw_context: str = ""

    # Filled in by the pipeline, in this order
    theme_profile: ThemeProfile | None = None
    signals: ChecklistSignals | None = None
    theme_id: str = "wellness_generic"
    chunks: list[MapChunk] = field(default_factory=list)
    results: list[ChunkResult] = field(default_factory=list)

    # step name -> elapsed ms
    timings: dict[str, float] = field(default_factory=dict)

    @property
    def ai_maps(self) -> int:
        return sum(1 for r in self.results if r.source == "ai")
