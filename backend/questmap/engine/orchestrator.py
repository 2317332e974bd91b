"""AI generation orchestrator — one chunk in, one valid MapSpecification out.

Per chunk, in order:

1. AI generation off or unconfigured → procedural map.
2. First chunk only: reuse a stored template for (themeKey, stepCount).
3. Artwork: fresh for the first chunk, an edit of the previous chunk's
   artwork afterwards. Failure → procedural map (keeping the previous
   artwork as background so the journey still reads as one world).
4. Layout: vision trace of path + checkpoints. Failure → procedural map
   with this chunk's artwork as background.
5. Assembly → sanitizer → ``source='ai'``.

``process_chunk`` never raises.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import TypeVar

from questmap.config import Settings, settings
from questmap.engine.artwork import build_artwork_prompt
from questmap.engine.config import PipelineConfig
from questmap.engine.layout import LayoutExtractor, LayoutResult
from questmap.engine.procedural import default_palette, fallback_path, generate_procedural_map, node_label
from questmap.engine.sanitizer import sanitize_map_spec
from questmap.engine.signals import ChecklistSignals
from questmap.engine.themes import to_map_theme
from questmap.llm.errors import EmptyPayloadError
from questmap.llm.ports import ImageGenerator
from questmap.models.checklist import MapChunk, ThemeProfile
from questmap.models.map_spec import MapSource, MapSpecification
from questmap.storage.artwork_store import Artwork, ArtworkStore
from questmap.storage.template_store import MapTemplate, TemplateStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ChunkResult:
    spec: MapSpecification
    source: MapSource
    warnings: list[str] = field(default_factory=list)
    # Continuation input for the next chunk
    artwork: Artwork | None = None
    template_reused: bool = False


class MapOrchestrator:
    """Turns a chunk into a map, downgrading to the procedural generator on any failure."""

    def __init__(
        self,
        image_generator: ImageGenerator | None = None,
        layout_extractor: LayoutExtractor | None = None,
        artwork_store: ArtworkStore | None = None,
        template_store: TemplateStore | None = None,
        cfg: Settings | None = None,
        config: PipelineConfig | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.cfg = cfg or settings
        self.config = config or PipelineConfig()
        self.image_generator = image_generator
        self.layout_extractor = layout_extractor
        self.artwork_store = artwork_store or ArtworkStore(self.cfg.artwork_dir, self.cfg.artwork_url_prefix)
        self.template_store = template_store
        self.enabled = self.cfg.ai_map_generation_ready if enabled is None else enabled

    @property
    def ai_ready(self) -> bool:
        return self.enabled and self.image_generator is not None and self.layout_extractor is not None

    async def process_chunk(
        self,
        chunk: MapChunk,
        *,
        map_index: int,
        profile: ThemeProfile,
        theme_id: str,
        signals: ChecklistSignals | None = None,
        previous_artwork: Artwork | None = None,
    ) -> ChunkResult:
        try:
            return await self._process(chunk, map_index, profile, theme_id, signals, previous_artwork)
        except Exception as e:
            logger.warning("Chunk %d: unexpected failure, procedural map used: %s", map_index, e)
            return self._fallback(
                chunk, theme_id, signals, [f"Map generation failed ({e}); procedural map used."], previous_artwork
            )

    async def _process(
        self,
        chunk: MapChunk,
        map_index: int,
        profile: ThemeProfile,
        theme_id: str,
        signals: ChecklistSignals | None,
        previous_artwork: Artwork | None,
    ) -> ChunkResult:
        if not self.ai_ready:
            return self._fallback(
                chunk, theme_id, signals, ["AI map generation disabled or not configured; procedural map used."]
            )

        node_count = self.config.clamp_node_count(chunk.size)
        first_chunk = map_index == 0
        use_templates = first_chunk and self.config.template_reuse and self.template_store is not None

        if use_templates:
            reused = self._reuse_template(profile, node_count)
            if reused is not None:
                return reused

        # Artwork
        prompt = build_artwork_prompt(profile, node_count, level=map_index + 1, config=self.config)
        continuation = previous_artwork.data if previous_artwork is not None and not first_chunk else None
        try:
            image = await self._bounded(self.image_generator.generate(prompt, continuation))
            if not image:
                raise EmptyPayloadError("image generator returned no bytes")
            artwork = self.artwork_store.save(image, profile.theme_key, node_count)
        except Exception as e:
            logger.warning("Chunk %d: artwork generation failed: %s", map_index, e)
            return self._fallback(
                chunk,
                theme_id,
                signals,
                [f"Artwork generation failed ({e}); procedural map used."],
                None if first_chunk else previous_artwork,
            )

        # Layout
        try:
            layout = await self.layout_extractor.extract(artwork.data, chunk.items, node_count)
        except Exception as e:
            logger.warning("Chunk %d: layout extraction failed: %s", map_index, e)
            return self._fallback(
                chunk, theme_id, signals, [f"Layout extraction failed ({e}); procedural map used."], artwork
            )

        # Assembly
        map_theme = to_map_theme(profile)
        result = sanitize_map_spec(
            self._candidate(chunk, map_theme, layout, artwork, node_count),
            node_count,
            fallback_path(map_theme, node_count, self.config),
            self.config,
            image_prefixes=("http://", "https://", f"{self.artwork_store.url_prefix}/"),
        )
        warnings = layout.warnings + result.warnings
        source = result.spec.meta.source
        if source != "ai":
            result.spec.background.image_url = artwork.url
        elif use_templates:
            self._store_template(profile, node_count, result.spec, artwork)

        return ChunkResult(spec=result.spec, source=source, warnings=warnings, artwork=artwork)

    def _candidate(
        self,
        chunk: MapChunk,
        map_theme: str,
        layout: LayoutResult,
        artwork: Artwork,
        node_count: int,
    ) -> dict:
        """Raw camelCase spec from the traced layout; the sanitizer has the last word."""
        nodes = []
        for i, point in enumerate(layout.nodes[:node_count]):
            item = chunk.items[i] if i < len(chunk.items) else None
            nodes.append({
                "id": f"n{i + 1}",
                "index": i,
                "x": point.x,
                "y": point.y,
                "stageType": (item.category if item else "") or "general",
                "label": node_label(i, chunk.start_index),
            })
        first = layout.nodes[0] if layout.nodes else layout.path[0]
        return {
            "version": 1,
            "themeId": map_theme,
            "styleTier": "ai_art",
            "palette": default_palette(map_theme).model_dump(),
            "background": {"imageUrl": artwork.url, "parallaxLayers": []},
            "path": [{"x": p.x, "y": p.y} for p in layout.path],
            "nodes": nodes,
            "decor": [],
            "character": {"x": first.x, "y": first.y, "skin": "explorer_default"},
            "meta": {"source": "ai", "seed": int(time.time() * 1000) % 1_000_000, "checklistCount": node_count},
        }

    def _reuse_template(self, profile: ThemeProfile, node_count: int) -> ChunkResult | None:
        try:
            template = self.template_store.record_usage(profile.theme_key, node_count, self.config.prompt_version)
        except Exception as e:
            logger.warning("Template lookup failed for %s/%d, generating fresh: %s", profile.theme_key, node_count, e)
            return None
        if template is None:
            return None
        logger.info(
            "Reusing template %s (used %d times)", template.key, template.usage_count
        )
        artwork = Artwork(
            data=self.artwork_store.load(template.image_path),
            path=template.image_path,
            url=template.image_url,
        )
        return ChunkResult(
            spec=template.map_spec,
            source=template.map_spec.meta.source,
            warnings=[],
            artwork=artwork,
            template_reused=True,
        )

    def _store_template(
        self, profile: ThemeProfile, node_count: int, spec: MapSpecification, artwork: Artwork
    ) -> None:
        template = MapTemplate(
            theme_key=profile.theme_key,
            step_count=node_count,
            prompt_version=self.config.prompt_version,
            specialty=profile.specialty,
            map_spec=spec,
            image_url=artwork.url,
            image_path=artwork.path,
            theme_profile=profile,
        )
        try:
            self.template_store.insert_if_absent(template)
        except Exception as e:
            logger.warning("Template store write failed for %s: %s", template.key, e)

    def _fallback(
        self,
        chunk: MapChunk,
        theme_id: str,
        signals: ChecklistSignals | None,
        warnings: list[str],
        artwork: Artwork | None = None,
    ) -> ChunkResult:
        spec = generate_procedural_map(
            theme_id,
            chunk.size,
            items=chunk.items,
            signals=signals,
            start_index=chunk.start_index,
            config=self.config,
        )
        if artwork is not None and artwork.url:
            spec.background.image_url = artwork.url
        return ChunkResult(spec=spec, source="fallback", warnings=warnings, artwork=artwork)

    async def _bounded(self, call: Awaitable[T]) -> T:
        timeout = self.cfg.ai_call_timeout_seconds
        if timeout:
            return await asyncio.wait_for(call, timeout)
        return await call
