"""Procedural map generator — deterministic, network-free Map Specifications.

This is the safety net for every other generation path: it never raises and
never touches I/O. The only field that differs between two calls with the
same inputs is ``meta.seed``.
"""

from __future__ import annotations

import time
from collections.abc import Sequence

from questmap.engine.config import PipelineConfig
from questmap.engine.signals import ChecklistSignals
from questmap.models.checklist import ChecklistItem
from questmap.models.map_spec import (
    THEME_IDS,
    CharacterSpawn,
    MapBackground,
    MapDecor,
    MapMeta,
    MapNode,
    MapPoint,
    MapSpecification,
    ParallaxLayer,
    ThemeId,
    ThemePalette,
)
from questmap.utils.geometry import resample_path


def _pts(*coords: tuple[float, float]) -> tuple[MapPoint, ...]:
    return tuple(MapPoint(x=x, y=y) for x, y in coords)


THEME_BASE_PATHS: dict[str, tuple[MapPoint, ...]] = {
    "desert_pyramids": _pts(
        (0.08, 0.92), (0.2, 0.78), (0.36, 0.7), (0.24, 0.56), (0.45, 0.48),
        (0.7, 0.53), (0.85, 0.38), (0.65, 0.28), (0.5, 0.14),
    ),
    "jungle_garden": _pts(
        (0.1, 0.92), (0.28, 0.82), (0.17, 0.68), (0.4, 0.62), (0.58, 0.68),
        (0.78, 0.52), (0.6, 0.37), (0.38, 0.3), (0.55, 0.14),
    ),
    "city_vitamins": _pts(
        (0.12, 0.9), (0.22, 0.76), (0.37, 0.8), (0.48, 0.65), (0.34, 0.53),
        (0.55, 0.44), (0.75, 0.56), (0.82, 0.36), (0.62, 0.18),
    ),
    "wellness_generic": _pts(
        (0.1, 0.9), (0.25, 0.78), (0.18, 0.62), (0.42, 0.56), (0.62, 0.6),
        (0.78, 0.42), (0.58, 0.28), (0.35, 0.2), (0.55, 0.1),
    ),
}

THEME_PALETTES: dict[str, dict[str, str]] = {
    "desert_pyramids": {
        "primary": "#F59E0B", "secondary": "#D97706", "accent": "#FCD34D",
        "ground": "#B0893A", "sky": "#7C2D12",
    },
    "jungle_garden": {
        "primary": "#22C55E", "secondary": "#15803D", "accent": "#86EFAC",
        "ground": "#2D6A4F", "sky": "#14532D",
    },
    "city_vitamins": {
        "primary": "#3B82F6", "secondary": "#1D4ED8", "accent": "#93C5FD",
        "ground": "#4B5563", "sky": "#172554",
    },
    "wellness_generic": {
        "primary": "#8B5CF6", "secondary": "#7C3AED", "accent": "#C4B5FD",
        "ground": "#475569", "sky": "#1E293B",
    },
}

# (assetId, x, y, scale, layer)
_THEME_DECOR: dict[str, tuple[tuple[str, float, float, float, str], ...]] = {
    "desert_pyramids": (
        ("pyramid_large", 0.24, 0.36, 1.3, "back"),
        ("pyramid_small", 0.78, 0.3, 1.1, "back"),
        ("oasis_tree", 0.62, 0.52, 1.0, "mid"),
    ),
    "jungle_garden": (
        ("tree_big", 0.18, 0.28, 1.2, "back"),
        ("veggie_patch", 0.58, 0.72, 1.1, "mid"),
        ("waterfall", 0.78, 0.34, 1.0, "back"),
    ),
    "city_vitamins": (
        ("tower_block", 0.16, 0.22, 1.3, "back"),
        ("lab_sign", 0.72, 0.2, 1.0, "mid"),
        ("pill_statue", 0.62, 0.78, 0.9, "front"),
    ),
    "wellness_generic": (
        ("meadow_flowers", 0.22, 0.4, 1.0, "mid"),
        ("wellness_lantern", 0.7, 0.66, 0.9, "front"),
        ("cloud_far", 0.5, 0.08, 1.4, "back"),
    ),
}

# Desert maps for nutrition-leaning checklists swap pyramids for greenery.
_DESERT_GREEN_DECOR: tuple[tuple[str, float, float, float, str], ...] = (
    ("palm", 0.6, 0.44, 1.0, "mid"),
    ("cactus", 0.12, 0.62, 1.1, "front"),
)

# (assetId, speed, opacity)
_THEME_PARALLAX: dict[str, tuple[tuple[str, float, float], ...]] = {
    "desert_pyramids": (("far_dunes", 0.08, 0.35), ("near_dunes", 0.18, 0.5)),
    "jungle_garden": (("far_trees", 0.08, 0.4), ("near_vines", 0.2, 0.55)),
    "city_vitamins": (("far_skyline", 0.08, 0.35), ("near_skyline", 0.16, 0.55)),
    "wellness_generic": (("far_hills", 0.08, 0.35), ("near_meadow", 0.18, 0.5)),
}


def normalize_theme_id(theme_id: str | None) -> ThemeId:
    return theme_id if theme_id in THEME_IDS else "wellness_generic"  # type: ignore[return-value]


def default_palette(theme_id: str) -> ThemePalette:
    return ThemePalette(**THEME_PALETTES[normalize_theme_id(theme_id)])


def base_path(theme_id: str) -> list[MapPoint]:
    return list(THEME_BASE_PATHS[normalize_theme_id(theme_id)])


def fallback_path(theme_id: str, node_count: int, config: PipelineConfig | None = None) -> list[MapPoint]:
    """The theme's base curve resampled to the (clamped) node count."""
    cfg = config or PipelineConfig()
    return resample_path(base_path(theme_id), cfg.clamp_node_count(node_count))


def _stage_types(items: Sequence[ChecklistItem], signals: ChecklistSignals | None, count: int) -> list[str]:
    if items:
        return [(items[i].category if i < len(items) else "") or "general" for i in range(count)]
    categories = list(signals.categories) if signals else []
    if not categories:
        return ["general"] * count
    return [categories[i % len(categories)] for i in range(count)]


def node_label(index: int, start_index: int | None) -> str:
    if start_index is None:
        return f"Stage {index + 1}"
    return f"Step {start_index + index + 1}"


def generate_procedural_map(
    theme_id: str,
    node_count: int,
    *,
    items: Sequence[ChecklistItem] = (),
    signals: ChecklistSignals | None = None,
    start_index: int | None = None,
    config: PipelineConfig | None = None,
) -> MapSpecification:
    """Build a complete, valid spec for ``theme_id`` with ``node_count`` checkpoints.

    Unknown theme ids resolve to ``wellness_generic``; ``node_count`` is
    clamped to the configured node range. ``items``/``signals`` only decorate
    node stage types; ``start_index`` switches labels to global step numbers.
    """
    cfg = config or PipelineConfig()
    theme = normalize_theme_id(theme_id)
    count = cfg.clamp_node_count(node_count)
    path = resample_path(base_path(theme), count)
    stage_types = _stage_types(items, signals, count)

    nodes = [
        MapNode(
            id=f"n{i + 1}",
            index=i,
            stage_type=stage_types[i],
            label=node_label(i, start_index),
            x=point.x,
            y=point.y,
        )
        for i, point in enumerate(path)
    ]

    decor_rows = _THEME_DECOR[theme]
    if theme == "desert_pyramids" and signals is not None and signals.keywords.get("vegetables", 0) > 0:
        decor_rows = _DESERT_GREEN_DECOR
    decor = [
        MapDecor(asset_id=a, x=x, y=y, scale=s, layer=layer)  # type: ignore[arg-type]
        for a, x, y, s, layer in decor_rows
    ]

    return MapSpecification(
        theme_id=theme,
        style_tier="enhanced",
        palette=default_palette(theme),
        background=MapBackground(
            parallax_layers=[
                ParallaxLayer(asset_id=a, speed=sp, opacity=op) for a, sp, op in _THEME_PARALLAX[theme]
            ],
        ),
        path=path,
        nodes=nodes,
        decor=decor,
        character=CharacterSpawn(
            skin="medic_neo" if theme == "city_vitamins" else "explorer_default",
            x=path[0].x,
            y=path[0].y,
        ),
        meta=MapMeta(source="fallback", seed=int(time.time() * 1000) % 1_000_000, checklist_count=count),
    )
