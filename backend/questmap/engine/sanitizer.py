"""Spec sanitizer — turns any untrusted candidate into a valid MapSpecification.

``sanitize_map_spec`` is total: whatever ``candidate`` is (a dict from model
JSON, a half-built spec, ``None``, a string...), it returns a structurally
valid spec plus human-readable warnings. Every field has its own fallback, so
one bad field never discards the good ones.

Rules:
- themeId outside the closed enum → ``wellness_generic``
- each palette color validated on its own → theme default when not ``#RRGGBB``
- path with < 2 points → the supplied fallback path; otherwise points clamped
- nodes → exactly the expected count (clamped to [2, 12]), padded from the path
  or truncated
- decor → malformed entries dropped, capped at 40
- character → node 0's position when absent
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from questmap.engine.config import PipelineConfig
from questmap.engine.procedural import base_path, default_palette, generate_procedural_map
from questmap.models.map_spec import (
    DECOR_LAYERS,
    DEFAULT_THEME_ID,
    HEX_COLOR_PATTERN,
    PALETTE_FIELDS,
    STYLE_TIERS,
    THEME_IDS,
    CharacterSpawn,
    MapBackground,
    MapDecor,
    MapMeta,
    MapNode,
    MapPoint,
    MapSpecification,
    ParallaxLayer,
    ThemePalette,
)
from questmap.utils.math_helpers import clamp, clamp01, to_finite_float, to_float

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(HEX_COLOR_PATTERN)
_CENTER = MapPoint(x=0.5, y=0.5)
DEFAULT_IMAGE_PREFIXES: tuple[str, ...] = ("http://", "https://", "/maps/")


@dataclass
class SanitizeResult:
    spec: MapSpecification
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings


def _get(obj: Any, key: str) -> Any:
    """Attribute-or-key lookup that never raises."""
    if isinstance(obj, dict):
        return obj.get(key)
    return None


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _nonempty_str(value: Any, limit: int) -> str | None:
    if isinstance(value, str) and value:
        return value[:limit]
    return None


def _coord(value: Any, fallback: float) -> float:
    if value is None:
        return clamp01(fallback)
    f = to_float(value)
    return clamp01(f if f is not None else float("nan"))


def to_point(raw: Any, fallback: MapPoint) -> MapPoint:
    """Clamp a raw ``{x, y}`` into [0, 1]; missing coordinates take ``fallback``'s."""
    return MapPoint(x=_coord(_get(raw, "x"), fallback.x), y=_coord(_get(raw, "y"), fallback.y))


def _sanitize_node(raw: Any, index: int, fallback: MapPoint, cfg: PipelineConfig) -> MapNode:
    point = to_point(raw, fallback)
    return MapNode(
        id=_nonempty_str(_get(raw, "id"), 64) or f"n{index + 1}",
        index=index,
        stage_type=_nonempty_str(_get(raw, "stageType"), 64) or "general",
        label=_nonempty_str(_get(raw, "label"), cfg.max_label_chars) or f"Stage {index + 1}",
        x=point.x,
        y=point.y,
    )


def _sanitize_decor(raw: Any, cfg: PipelineConfig) -> MapDecor | None:
    asset_id = _nonempty_str(_get(raw, "assetId"), cfg.max_asset_id_chars)
    if not asset_id:
        return None
    point = to_point(raw, _CENTER)
    scale = to_finite_float(_get(raw, "scale"))
    layer = _get(raw, "layer")
    return MapDecor(
        asset_id=asset_id,
        x=point.x,
        y=point.y,
        scale=clamp(scale, 0.5, 2.0) if scale is not None else 1.0,
        layer=layer if layer in DECOR_LAYERS else "mid",
    )


def _sanitize_parallax(raw: Any, cfg: PipelineConfig) -> ParallaxLayer | None:
    asset_id = _nonempty_str(_get(raw, "assetId"), cfg.max_asset_id_chars)
    if not asset_id:
        return None
    speed = to_finite_float(_get(raw, "speed"))
    opacity = to_finite_float(_get(raw, "opacity"))
    return ParallaxLayer(
        asset_id=asset_id,
        speed=clamp(speed, 0.05, 1.5) if speed is not None else 0.2,
        opacity=clamp(opacity, 0.1, 1.0) if opacity is not None else 0.5,
    )


def _synth_point(path: Sequence[MapPoint], index: int, count: int) -> MapPoint:
    """Evenly spread position along ``path`` for a synthesized node."""
    if count <= 1:
        return path[0]
    pos = round(index * (len(path) - 1) / (count - 1))
    return path[min(pos, len(path) - 1)]


def _sanitize(
    candidate: Any,
    expected_node_count: int,
    fallback_path: Sequence[MapPoint],
    cfg: PipelineConfig,
    image_prefixes: Sequence[str],
    warnings: list[str],
) -> MapSpecification:
    raw_theme = _get(candidate, "themeId")
    if raw_theme in THEME_IDS:
        theme_id = raw_theme
    else:
        theme_id = DEFAULT_THEME_ID
        warnings.append(f"Invalid or missing themeId {raw_theme!r}; {DEFAULT_THEME_ID} used.")

    defaults = default_palette(theme_id)
    raw_palette = _get(candidate, "palette")
    colors: dict[str, str] = {}
    for name in PALETTE_FIELDS:
        value = _get(raw_palette, name)
        if isinstance(value, str) and _HEX_COLOR.fullmatch(value):
            colors[name] = value
        else:
            colors[name] = getattr(defaults, name)
            warnings.append(f"Palette color {name!r} invalid; theme default used.")
    palette = ThemePalette(**colors)

    raw_path = _as_list(_get(candidate, "path"))
    if len(raw_path) >= 2:
        path = [to_point(p, fallback_path[i % len(fallback_path)]) for i, p in enumerate(raw_path)]
    else:
        path = list(fallback_path)
        warnings.append("Path had fewer than 2 points; fallback path used.")

    target = cfg.clamp_node_count(expected_node_count)
    raw_nodes = _as_list(_get(candidate, "nodes"))
    nodes = [
        _sanitize_node(raw_nodes[i] if i < len(raw_nodes) else None, i, _synth_point(path, i, target), cfg)
        for i in range(target)
    ]
    if len(raw_nodes) != target:
        warnings.append(f"Node count normalized from {len(raw_nodes)} to {target}.")

    raw_decor = _as_list(_get(candidate, "decor"))
    decor = [d for d in (_sanitize_decor(r, cfg) for r in raw_decor) if d is not None]
    if len(decor) > cfg.max_decor:
        warnings.append(f"Decor trimmed from {len(decor)} to {cfg.max_decor} items.")
        decor = decor[: cfg.max_decor]

    raw_character = _get(candidate, "character")
    spawn = to_point(raw_character, MapPoint(x=nodes[0].x, y=nodes[0].y))
    character = CharacterSpawn(
        skin=_nonempty_str(_get(raw_character, "skin"), cfg.max_skin_chars) or "explorer_default",
        x=spawn.x,
        y=spawn.y,
    )

    raw_background = _get(candidate, "background")
    image_url = _get(raw_background, "imageUrl")
    if not (isinstance(image_url, str) and image_url.startswith(tuple(image_prefixes))):
        image_url = None
    layers = [
        layer
        for layer in (_sanitize_parallax(r, cfg) for r in _as_list(_get(raw_background, "parallaxLayers")))
        if layer is not None
    ][: cfg.max_parallax_layers]

    raw_tier = _get(candidate, "styleTier")
    raw_meta = _get(candidate, "meta")
    seed = to_finite_float(_get(raw_meta, "seed"))

    return MapSpecification(
        theme_id=theme_id,
        style_tier=raw_tier if raw_tier in STYLE_TIERS else "template",
        palette=palette,
        background=MapBackground(image_url=image_url, parallax_layers=layers),
        path=path,
        nodes=nodes,
        decor=decor,
        character=character,
        meta=MapMeta(
            source="ai" if _get(raw_meta, "source") == "ai" else "fallback",
            seed=int(seed) if seed is not None else int(time.time() * 1000) % 1_000_000,
            checklist_count=target,
        ),
    )


def sanitize_map_spec(
    candidate: Any,
    expected_node_count: int,
    fallback_path: Sequence[MapPoint],
    config: PipelineConfig | None = None,
    image_prefixes: Sequence[str] = DEFAULT_IMAGE_PREFIXES,
) -> SanitizeResult:
    """Normalize ``candidate`` into a valid spec. Never raises."""
    cfg = config or PipelineConfig()
    if isinstance(candidate, MapSpecification):
        candidate = candidate.model_dump(by_alias=True)

    warnings: list[str] = []
    fallback = list(fallback_path) if len(fallback_path) >= 2 else base_path(DEFAULT_THEME_ID)
    if fallback is not fallback_path and len(fallback_path) < 2:
        warnings.append("Fallback path had fewer than 2 points; default theme path used.")

    try:
        spec = _sanitize(candidate, expected_node_count, fallback, cfg, image_prefixes, warnings)
    except Exception as e:
        logger.warning("Sanitizer could not salvage candidate, using procedural map: %s", e)
        warnings.append(f"Candidate unusable ({e}); procedural map used.")
        spec = generate_procedural_map(DEFAULT_THEME_ID, expected_node_count, config=cfg)

    for w in warnings:
        logger.debug("sanitize: %s", w)
    return SanitizeResult(spec=spec, warnings=warnings)
