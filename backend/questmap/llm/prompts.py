"""Prompt templates per task — theme classification, map artwork, layout tracing."""

from __future__ import annotations

_THEME_TEMPLATE = """Determine ONE primary medical specialty theme from the consultation/checklist content.

CRITICAL RULES:
- Return JSON only.
- PRIORITIZE the "Raw consultation context" section - it contains the user's direct input.
- Pick exactly one specialty based on SPECIFIC keywords in the raw context first, then checklist items.
- Theme must reflect user input directly, not generic wellness assumptions.

THEME DETECTION RULES (check in order, first match wins):
{rules}
{fallback_rule}

Include 5-12 side elements (decorative landmarks) that fit the specialty.

Output JSON schema:
{{
  "theme_key": "{theme_keys}",
  "specialty": "Human readable specialty name (e.g. 'Dentistry')",
  "theme_keywords": ["keyword1", "keyword2", "keyword3"],
  "specific_elements": ["element1", "element2", "element3", "element4", "element5"]
}}

Raw consultation context (PRIORITIZE THIS):
{raw_context}

Checklist items (secondary reference):
{checklist}"""

_ARTWORK_TEMPLATE = """Create a vibrant, optimistic TOP-DOWN ZOOMED-OUT game map view showing multiple checkpoints/stages across a themed landscape.

LAYOUT:
- Bird's eye view looking down at the whole map, like a mobile game campaign map.
- Show {step_count} checkpoint locations distributed across the map in a clear start-to-end progression.
- Do NOT draw path dots, path lines or connection patterns between checkpoints.

THEME (MUST FOLLOW):
- Theme: {specialty}
- Keywords: {keywords}
- World made of: {world_material}
- Landmarks to include: {elements}
- The entire terrain must be built from {specialty}-themed elements; nothing unrelated to {specialty}.

STYLE: top-down game map, vibrant, colorful, high detail, bright lighting. NO people, NO text labels, NO path dots, NO connection lines."""

_CONTINUATION_CLAUSE = """

CONTINUATION: Level {level} of the same world. Continue the visual style and terrain of the previous map so the two read as one journey."""

_LAYOUT_TEMPLATE = """You are analyzing a TOP-DOWN game journey map image.

TASK:
1. Trace the route a traveller would follow through the map, from start to end.
2. Place EXACTLY {step_count} checkpoints on that route, in order. Checkpoint k is step k of the journey:
{items}

COORDINATES:
- Normalized to the image: x 0.0 = left edge, 1.0 = right edge; y 0.0 = top edge, 1.0 = bottom edge.
- The first checkpoint (index 0) sits near the start of the route (typically lower part of the image).
- The last checkpoint (index {last_index}) sits near the end of the route (typically upper part of the image).
- Put checkpoints on visible landmarks or clearings, spaced so they are readable on a phone.

Return ONLY a JSON object (no markdown):
{{
  "path": [{{"x": 0.5, "y": 0.95}}, {{"x": 0.52, "y": 0.88}}, ...],
  "nodes": [{{"index": 0, "x": 0.5, "y": 0.95}}, ...]
}}

REQUIREMENTS:
- "path" has 20-30 points tracing the route's curve from start to end.
- "nodes" has exactly {step_count} entries with "index" 0..{last_index}, ordered start to end.
- All coordinates are numbers between 0.0 and 1.0."""

_TEMPLATES = {
    "theme": _THEME_TEMPLATE,
    "artwork": _ARTWORK_TEMPLATE,
    "continuation": _CONTINUATION_CLAUSE,
    "layout": _LAYOUT_TEMPLATE,
}


def get_prompt_template(task: str) -> str:
    return _TEMPLATES[task]


def get_all_templates() -> dict[str, str]:
    """Return all prompt templates keyed by task name."""
    return dict(_TEMPLATES)
