"""API request models."""

from __future__ import annotations

from pydantic import Field

from questmap.models.checklist import ChecklistItem
from questmap.models.map_spec import WireModel
from questmap.storage.map_store import CONSULTATION_ID_PATTERN


class GenerateMapsRequest(WireModel):
    items: list[ChecklistItem] = Field(..., min_length=1, description="Ordered checklist items")
    context: str = Field(default="", description="Free-text consultation context")
    consultation_id: str | None = Field(
        default=None,
        pattern=CONSULTATION_ID_PATTERN,
        description="Existing consultation id; generated when absent",
    )


class ClassifyThemeRequest(WireModel):
    items: list[ChecklistItem] = Field(default_factory=list, description="Checklist items to classify")
    context: str = Field(default="", description="Free-text consultation context")
