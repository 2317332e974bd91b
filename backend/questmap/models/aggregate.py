"""Per-consultation ordered collection of generated maps."""

from __future__ import annotations

from pydantic import Field

from questmap.models.checklist import ChecklistItem, ThemeProfile
from questmap.models.map_spec import MapSource, MapSpecification, WireModel


class MapRecord(WireModel):
    map_index: int = Field(..., ge=0)
    start_index: int = Field(..., ge=0)
    end_index: int = Field(..., ge=0)
    items: list[ChecklistItem] = Field(default_factory=list)
    spec: MapSpecification
    source: MapSource = "fallback"
    warnings: list[str] = Field(default_factory=list)
    image_url: str | None = None
    image_path: str | None = None


class MapSpecAggregate(WireModel):
    """Maps in processing order. ``map_index`` is contiguous from 0."""

    consultation_id: str
    theme_profile: ThemeProfile = Field(default_factory=ThemeProfile)
    maps: list[MapRecord] = Field(default_factory=list)

    @property
    def total_maps(self) -> int:
        return len(self.maps)

    def append(self, record: MapRecord) -> None:
        if record.map_index != len(self.maps):
            raise ValueError(
                f"map_index {record.map_index} is not contiguous; expected {len(self.maps)}"
            )
        self.maps.append(record)

    def get(self, map_index: int) -> MapRecord | None:
        if 0 <= map_index < len(self.maps):
            return self.maps[map_index]
        return None

    def next(self, map_index: int) -> MapRecord | None:
        return self.get(map_index + 1) if map_index >= 0 else None

    def prev(self, map_index: int) -> MapRecord | None:
        return self.get(map_index - 1) if map_index > 0 else None
