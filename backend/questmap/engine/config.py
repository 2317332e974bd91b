"""Pipeline configuration — algorithm constants for chunking, sanitizing and generation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PipelineConfig:
    """Controls chunk sizing, spec limits and the AI generation path."""

    # Checklist items per map
    min_steps_per_map: int = 3
    max_steps_per_map: int = 6

    # Checkpoints per map are always clamped into this range
    min_nodes: int = 2
    max_nodes: int = 12

    # Spec limits
    max_decor: int = 40
    max_parallax_layers: int = 8
    max_label_chars: int = 60
    max_asset_id_chars: int = 48
    max_skin_chars: int = 32

    # Artwork prompt
    max_prompt_chars: int = 4000
    prompt_version: int = 2

    # First-chunk template reuse keyed by (themeKey, stepCount, promptVersion)
    template_reuse: bool = True

    # Re-order extracted checkpoints by their position along the traced path
    reorder_nodes_along_path: bool = True

    def clamp_node_count(self, count: int) -> int:
        return max(self.min_nodes, min(self.max_nodes, int(count)))
