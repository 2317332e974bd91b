"""API response models."""

from __future__ import annotations

from pydantic import BaseModel

from questmap.models.aggregate import MapRecord
from questmap.models.map_spec import WireModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"


class MapPageResponse(WireModel):
    map: MapRecord
    prev_index: int | None = None
    next_index: int | None = None
    total_maps: int = 0
