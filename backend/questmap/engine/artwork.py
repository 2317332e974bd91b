"""Artwork prompt construction from the consultation's ThemeProfile."""

from __future__ import annotations

from questmap.engine.config import PipelineConfig
from questmap.llm.prompts import get_prompt_template
from questmap.models.checklist import ThemeProfile

_WORLD_MATERIALS: dict[str, str] = {
    "dentistry": "enamel-white cliffs, gum-pink hills, toothpaste rivers and floss rope bridges",
    "chiropractic": "vertebra stepping stones, spine-ridge mountains and bone-white arches",
    "chest_radiology": "lung-shaped canyons, rib-cage ridges and glowing x-ray panels",
    "radiology": "scanner crystal spires, lens lakes and imaging beacon towers",
    "cardiology": "heart-shaped valleys, artery rivers and pulse-lit ridges",
    "orthopedics": "bone-ridge plateaus, joint-ring arches and cast-white boulders",
    "medication": "capsule boulders, pill-shaped trees and pharmacy bottle towers",
    "fitness": "running trails, training grounds and energetic sports terrain",
    "nutrition": "fruit orchards, vegetable terraces and fresh green fields",
}
_DEFAULT_WORLD_MATERIAL = "calm wellness meadows, gentle hills and healing springs"


def world_material(theme_key: str) -> str:
    return _WORLD_MATERIALS.get(theme_key, _DEFAULT_WORLD_MATERIAL)


def build_artwork_prompt(
    profile: ThemeProfile,
    step_count: int,
    level: int = 1,
    config: PipelineConfig | None = None,
) -> str:
    """Prompt for one map's artwork. ``level`` > 1 adds the continuation clause."""
    cfg = config or PipelineConfig()
    keywords = profile.theme_keywords[:5] or [profile.specialty]
    elements = profile.specific_elements or [f"{profile.specialty} landmarks"]

    prompt = get_prompt_template("artwork").format(
        step_count=step_count,
        specialty=profile.specialty,
        keywords=", ".join(keywords),
        world_material=world_material(profile.theme_key),
        elements=", ".join(elements),
    )
    clause = get_prompt_template("continuation").format(level=level) if level > 1 else ""
    # truncate the body, never the continuation clause
    return prompt[: max(0, cfg.max_prompt_chars - len(clause))] + clause
