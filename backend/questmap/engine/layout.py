"""Layout extraction — trace the route and checkpoints on generated artwork.

The vision model is asked for exactly N checkpoints; this module checks that
it delivered them. Anything structurally unusable raises
``MalformedPayloadError`` so the orchestrator can fall back while keeping
the artwork.
"""

from __future__ import annotations

import asyncio
import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from PIL import Image, UnidentifiedImageError

from questmap.config import Settings, settings
from questmap.engine.config import PipelineConfig
from questmap.llm.errors import MalformedPayloadError
from questmap.llm.parsing import extract_json_object
from questmap.llm.ports import VisionAnalyzer
from questmap.llm.prompts import get_prompt_template
from questmap.models.checklist import ChecklistItem
from questmap.models.map_spec import MapPoint
from questmap.utils.geometry import is_monotonic, project_onto_path
from questmap.utils.math_helpers import clamp01, to_finite_float, to_float

logger = logging.getLogger(__name__)


@dataclass
class LayoutResult:
    path: list[MapPoint]
    nodes: list[MapPoint]
    warnings: list[str] = field(default_factory=list)


def prepare_image_for_vision(image_bytes: bytes, max_side: int = 1024, quality: int = 80) -> tuple[bytes, str]:
    """Downscale to ``max_side`` and re-encode as JPEG. Returns (bytes, media type)."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img = img.convert("RGB")
            img.thumbnail((max_side, max_side))
            out = io.BytesIO()
            img.save(out, format="JPEG", quality=quality)
    except (UnidentifiedImageError, OSError) as e:
        raise MalformedPayloadError(f"artwork could not be decoded: {e}") from e
    return out.getvalue(), "image/jpeg"


def build_layout_prompt(items: Sequence[ChecklistItem], step_count: int) -> str:
    listing = "\n".join(
        f"   {i}. {items[i].title}" if i < len(items) else f"   {i}. Checkpoint {i + 1}"
        for i in range(step_count)
    )
    return get_prompt_template("layout").format(
        step_count=step_count,
        items=listing,
        last_index=step_count - 1,
    )


def _point(raw: Any) -> MapPoint | None:
    """A numeric ``{x, y}`` clamped into the canvas, or None when not numeric."""
    if not isinstance(raw, dict):
        return None
    x = to_finite_float(raw.get("x"))
    y = to_finite_float(raw.get("y"))
    if x is None or y is None:
        return None
    return MapPoint(x=clamp01(x), y=clamp01(y))


def parse_layout_response(text: str, step_count: int) -> LayoutResult:
    """Strictly parse ``{path, nodes}``. Raises ``MalformedPayloadError`` when unusable."""
    data = extract_json_object(text)

    raw_path = data.get("path")
    raw_nodes = data.get("nodes")
    if not isinstance(raw_path, list) or not isinstance(raw_nodes, list):
        raise MalformedPayloadError("layout response needs 'path' and 'nodes' arrays")

    path = [p for p in (_point(r) for r in raw_path) if p is not None]
    if len(path) < 2:
        raise MalformedPayloadError(f"layout path has {len(path)} usable points")

    indexed: list[tuple[float, MapPoint]] = []
    for position, raw in enumerate(raw_nodes):
        point = _point(raw)
        if point is None:
            continue
        index = to_float(raw.get("index"))
        indexed.append((index if index is not None else float(position), point))
    if len(indexed) != step_count:
        raise MalformedPayloadError(f"layout returned {len(indexed)} checkpoints, expected {step_count}")

    # sorted() is stable, so missing or duplicate indices keep response order
    nodes = [point for _, point in sorted(indexed, key=lambda pair: pair[0])]
    return LayoutResult(path=path, nodes=nodes)


def order_along_path(path: Sequence[MapPoint], nodes: Sequence[MapPoint]) -> tuple[list[MapPoint], bool]:
    """Sort checkpoints by projected distance along ``path``.

    Returns the (possibly re-ordered) nodes and whether anything moved.
    """
    distances = project_onto_path(path, nodes)
    if is_monotonic(distances):
        return list(nodes), False
    order = sorted(range(len(nodes)), key=lambda i: distances[i])
    return [nodes[i] for i in order], True


class LayoutExtractor:
    """Runs the vision round-trip and validates its answer."""

    def __init__(
        self,
        analyzer: VisionAnalyzer,
        cfg: Settings | None = None,
        config: PipelineConfig | None = None,
    ) -> None:
        self.analyzer = analyzer
        self.cfg = cfg or settings
        self.config = config or PipelineConfig()

    async def extract(self, image_bytes: bytes, items: Sequence[ChecklistItem], step_count: int) -> LayoutResult:
        image, media_type = prepare_image_for_vision(
            image_bytes, self.cfg.vision_max_side, self.cfg.vision_jpeg_quality
        )
        prompt = build_layout_prompt(items, step_count)

        call = self.analyzer.analyze(image, prompt, media_type=media_type)
        timeout = self.cfg.ai_call_timeout_seconds
        text = await (asyncio.wait_for(call, timeout) if timeout else call)

        result = parse_layout_response(text, step_count)
        if self.config.reorder_nodes_along_path:
            result.nodes, moved = order_along_path(result.path, result.nodes)
            if moved:
                result.warnings.append("Checkpoints re-ordered along the traced path.")
                logger.info("Layout checkpoints were out of order; re-ordered along path")

        logger.info("Layout extracted: %d path points, %d checkpoints", len(result.path), len(result.nodes))
        return result
