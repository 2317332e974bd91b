"""Checklist chunker — splits the ordered checklist into consecutive map-sized runs.

The size of each run is the only randomized decision in the pipeline. It goes
through a ``SizePicker`` so tests can pin it:

    chunk_checklist(items, size_picker=fixed_size_picker(4))
"""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence

from questmap.engine.config import PipelineConfig
from questmap.models.checklist import ChecklistItem, MapChunk

# (min_size, max_size) -> chosen size
SizePicker = Callable[[int, int], int]


def random_size_picker(rng: random.Random | None = None) -> SizePicker:
    """Uniform choice in ``[min_size, max_size]``. Seed ``rng`` for repeatable splits."""
    source = rng or random.Random()

    def pick(min_size: int, max_size: int) -> int:
        return source.randint(min_size, max_size)

    return pick


def fixed_size_picker(size: int) -> SizePicker:
    def pick(min_size: int, max_size: int) -> int:
        return size

    return pick


def sequence_size_picker(sizes: Sequence[int]) -> SizePicker:
    """Cycle through ``sizes``."""
    state = {"i": 0}

    def pick(min_size: int, max_size: int) -> int:
        size = sizes[state["i"] % len(sizes)]
        state["i"] += 1
        return size

    return pick


def chunk_checklist(
    items: Sequence[ChecklistItem],
    size_picker: SizePicker | None = None,
    config: PipelineConfig | None = None,
) -> list[MapChunk]:
    """Partition ``items`` into contiguous chunks covering every item exactly once.

    Each step picks a size in ``[min_steps_per_map, max_steps_per_map]``,
    clamped to the remaining count, so only the last chunk can be short.
    Whatever the picker returns is clamped into the configured range first.
    """
    cfg = config or PipelineConfig()
    pick = size_picker or random_size_picker()

    chunks: list[MapChunk] = []
    current = 0
    total = len(items)
    while current < total:
        remaining = total - current
        wanted = pick(cfg.min_steps_per_map, cfg.max_steps_per_map)
        wanted = max(cfg.min_steps_per_map, min(cfg.max_steps_per_map, int(wanted)))
        size = min(wanted, remaining)
        chunks.append(
            MapChunk(
                start_index=current,
                end_index=current + size - 1,
                items=list(items[current : current + size]),
            )
        )
        current += size
    return chunks
