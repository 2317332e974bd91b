"""Checklist-side models: the read-only input items, chunks and the theme profile."""

from __future__ import annotations

from pydantic import Field

from questmap.models.map_spec import WireModel


class ChecklistItem(WireModel):
    """One care-plan action. Produced upstream, consumed read-only."""

    title: str
    description: str = ""
    category: str = "general"


class MapChunk(WireModel):
    """Contiguous slice of the full checklist assigned to one map."""

    start_index: int = Field(..., ge=0)
    end_index: int = Field(..., ge=0)  # inclusive
    items: list[ChecklistItem] = Field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.items)


class ThemeProfile(WireModel):
    """Consultation-wide specialty + decorative vocabulary, shared by every chunk."""

    theme_key: str = "general_wellness"
    specialty: str = "general wellness"
    theme_keywords: list[str] = Field(default_factory=list)
    specific_elements: list[str] = Field(default_factory=list)
