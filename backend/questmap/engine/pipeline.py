"""Map pipeline — checklist in, MapSpecAggregate out.

theme detection → signals → chunking → per-chunk orchestration (strictly
sequential: chunk k+1 continues chunk k's artwork) → aggregate.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Sequence
from pathlib import Path

from questmap.config import Settings, settings
from questmap.engine.chunker import SizePicker, chunk_checklist
from questmap.engine.config import PipelineConfig
from questmap.engine.context import GenerationContext
from questmap.engine.layout import LayoutExtractor
from questmap.engine.orchestrator import MapOrchestrator
from questmap.engine.signals import ChecklistSignals, derive_checklist_signals, pick_theme_from_signals
from questmap.engine.themes import GENERAL_WELLNESS, ThemeClassifier, to_map_theme
from questmap.models.aggregate import MapRecord, MapSpecAggregate
from questmap.models.checklist import ChecklistItem, ThemeProfile
from questmap.models.map_spec import ThemeId
from questmap.storage.artwork_store import Artwork, ArtworkStore
from questmap.storage.map_store import MapStore
from questmap.storage.template_store import TemplateStore

logger = logging.getLogger(__name__)


def choose_map_theme(profile: ThemeProfile, signals: ChecklistSignals) -> ThemeId:
    """Specialty mapping when the profile is specific, checklist signals otherwise."""
    if profile.theme_key != GENERAL_WELLNESS:
        mapped = to_map_theme(profile)
        if mapped != "wellness_generic":
            return mapped
    return pick_theme_from_signals(signals)


class MapPipeline:
    """Drives one consultation's map generation."""

    def __init__(
        self,
        classifier: ThemeClassifier | None = None,
        orchestrator: MapOrchestrator | None = None,
        map_store: MapStore | None = None,
        size_picker: SizePicker | None = None,
        config: PipelineConfig | None = None,
    ) -> None:
        self.config = config or PipelineConfig()
        self.classifier = classifier or ThemeClassifier(enabled=False)
        self.orchestrator = orchestrator or MapOrchestrator(config=self.config, enabled=False)
        self.map_store = map_store
        self.size_picker = size_picker

    async def generate(
        self,
        items: Sequence[ChecklistItem],
        raw_context: str = "",
        consultation_id: str | None = None,
    ) -> MapSpecAggregate:
        ctx = GenerationContext(
            consultation_id=consultation_id or uuid.uuid4().hex,
            items=list(items),
            raw_context=raw_context,
        )
        return await self.run(ctx)

    async def run(self, ctx: GenerationContext) -> MapSpecAggregate:
        start = time.perf_counter()

        t0 = time.perf_counter()
        ctx.theme_profile = await self.classifier.classify(ctx.items, ctx.raw_context)
        ctx.signals = derive_checklist_signals(ctx.items)
        ctx.theme_id = choose_map_theme(ctx.theme_profile, ctx.signals)
        ctx.timings["theme"] = (time.perf_counter() - t0) * 1000

        ctx.chunks = chunk_checklist(ctx.items, self.size_picker, self.config)
        logger.info(
            "Consultation %s: %d items → %d maps (theme %s, map theme %s)",
            ctx.consultation_id,
            len(ctx.items),
            len(ctx.chunks),
            ctx.theme_profile.theme_key,
            ctx.theme_id,
        )

        aggregate = MapSpecAggregate(consultation_id=ctx.consultation_id, theme_profile=ctx.theme_profile)
        previous: Artwork | None = None

        for map_index, chunk in enumerate(ctx.chunks):
            t0 = time.perf_counter()
            result = await self.orchestrator.process_chunk(
                chunk,
                map_index=map_index,
                profile=ctx.theme_profile,
                theme_id=ctx.theme_id,
                signals=ctx.signals,
                previous_artwork=previous,
            )
            elapsed = (time.perf_counter() - t0) * 1000
            ctx.timings[f"map_{map_index}"] = elapsed
            ctx.results.append(result)
            previous = result.artwork

            aggregate.append(
                MapRecord(
                    map_index=map_index,
                    start_index=chunk.start_index,
                    end_index=chunk.end_index,
                    items=chunk.items,
                    spec=result.spec,
                    source=result.source,
                    warnings=result.warnings,
                    image_url=result.artwork.url if result.artwork else None,
                    image_path=result.artwork.path if result.artwork else None,
                )
            )
            logger.info(
                "  map %d (items %d-%d): %s%s in %.0fms",
                map_index,
                chunk.start_index,
                chunk.end_index,
                result.source,
                " (template)" if result.template_reused else "",
                elapsed,
            )
            for warning in result.warnings:
                logger.debug("  map %d: %s", map_index, warning)

        if self.map_store is not None:
            self.map_store.save(aggregate)

        total = (time.perf_counter() - start) * 1000
        logger.info(
            "Pipeline complete: %d/%d maps from AI in %.0fms",
            ctx.ai_maps,
            len(ctx.results),
            total,
        )
        return aggregate


def create_pipeline(
    cfg: Settings | None = None,
    config: PipelineConfig | None = None,
    map_store: MapStore | None = None,
    size_picker: SizePicker | None = None,
) -> MapPipeline:
    """Pipeline wired to the real text, vision and image services from settings."""
    from questmap.llm.client import AnthropicTextCompleter, AnthropicVisionAnalyzer
    from questmap.llm.image_gen import OpenAIImageGenerator

    cfg = cfg or settings
    config = config or PipelineConfig()
    templates_file = Path(cfg.data_dir) / "templates.json" if cfg.data_dir else None

    return MapPipeline(
        classifier=ThemeClassifier(AnthropicTextCompleter(cfg), cfg),
        orchestrator=MapOrchestrator(
            image_generator=OpenAIImageGenerator(cfg),
            layout_extractor=LayoutExtractor(AnthropicVisionAnalyzer(cfg), cfg, config),
            artwork_store=ArtworkStore(cfg.artwork_dir, cfg.artwork_url_prefix),
            template_store=TemplateStore(templates_file),
            cfg=cfg,
            config=config,
        ),
        map_store=map_store,
        size_picker=size_picker,
        config=config,
    )


async def generate_maps_for_checklist(
    items: Sequence[ChecklistItem],
    raw_context: str = "",
    consultation_id: str | None = None,
    pipeline: MapPipeline | None = None,
) -> MapSpecAggregate:
    """The single entry point the rest of the application needs."""
    return await (pipeline or create_pipeline()).generate(items, raw_context, consultation_id)
