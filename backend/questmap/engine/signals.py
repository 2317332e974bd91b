"""Checklist signals — keyword/category counts that drive the procedural map theme."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from questmap.models.checklist import ChecklistItem
from questmap.models.map_spec import ThemeId

_KEYWORD_GROUPS: dict[str, tuple[str, ...]] = {
    "vegetables": ("vegetable", "greens", "salad", "nutrition"),
    "vitamins": ("vitamin", "supplement", "capsule"),
    "medication": ("medication", "pill", "tablet", "dose", "medicine"),
    "exercise": ("exercise", "walk", "run", "cardio", "workout"),
    "tests": ("test", "lab", "blood", "scan", "appointment"),
    "hydration": ("water", "hydration", "drink"),
}


@dataclass
class ChecklistSignals:
    checklist_count: int = 0
    # category -> item count, in first-seen order
    categories: dict[str, int] = field(default_factory=dict)
    keywords: dict[str, int] = field(default_factory=lambda: {k: 0 for k in _KEYWORD_GROUPS})
    dominant_focus: str = "general"


def derive_checklist_signals(items: Sequence[ChecklistItem]) -> ChecklistSignals:
    """Count categories and keyword groups (substring match, one hit per item per group)."""
    signals = ChecklistSignals(checklist_count=len(items))

    for item in items:
        category = (item.category or "general").lower()
        signals.categories[category] = signals.categories.get(category, 0) + 1

        text = f"{item.title} {item.description}".lower()
        for group, terms in _KEYWORD_GROUPS.items():
            if any(term in text for term in terms):
                signals.keywords[group] += 1

    if signals.categories:
        # max() keeps the first-seen category on ties
        signals.dominant_focus = max(signals.categories, key=lambda c: signals.categories[c])
    return signals


def pick_theme_from_signals(signals: ChecklistSignals) -> ThemeId:
    kw = signals.keywords
    if kw["vegetables"] + kw["exercise"] >= 3:
        return "jungle_garden"
    if kw["vitamins"] + kw["tests"] >= 3:
        return "city_vitamins"
    if kw["medication"] >= 3:
        return "city_vitamins"
    if signals.dominant_focus in ("nutrition", "exercise"):
        return "jungle_garden"
    if signals.dominant_focus in ("medication", "test"):
        return "city_vitamins"
    return "desert_pyramids"
