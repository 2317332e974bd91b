"""MapStore — consultation id → MapSpecAggregate, optionally one JSON file each."""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path

from questmap.models.aggregate import MapRecord, MapSpecAggregate
from questmap.models.checklist import ThemeProfile

logger = logging.getLogger(__name__)

CONSULTATION_ID_PATTERN = r"^[A-Za-z0-9_-]{1,128}$"
_SAFE_ID = re.compile(CONSULTATION_ID_PATTERN)


class MapStore:
    def __init__(self, data_dir: Path | str | None = None) -> None:
        self.maps_dir = Path(data_dir) / "maps" if data_dir else None
        self._lock = threading.Lock()
        self._aggregates: dict[str, MapSpecAggregate] = {}

    def create(self, consultation_id: str, theme_profile: ThemeProfile | None = None) -> MapSpecAggregate:
        aggregate = MapSpecAggregate(
            consultation_id=consultation_id,
            theme_profile=theme_profile or ThemeProfile(),
        )
        self.save(aggregate)
        return aggregate

    def append(self, consultation_id: str, record: MapRecord) -> None:
        """Append to an existing aggregate. Raises KeyError / ValueError."""
        aggregate = self.load(consultation_id)
        if aggregate is None:
            raise KeyError(consultation_id)
        aggregate.append(record)
        self.save(aggregate)

    def save(self, aggregate: MapSpecAggregate) -> None:
        with self._lock:
            self._aggregates[aggregate.consultation_id] = aggregate
            path = self._path_for(aggregate.consultation_id)
            if path is not None:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(aggregate.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        logger.debug("Saved %d maps for consultation %s", aggregate.total_maps, aggregate.consultation_id)

    def load(self, consultation_id: str) -> MapSpecAggregate | None:
        with self._lock:
            cached = self._aggregates.get(consultation_id)
            if cached is not None:
                return cached
            if self.maps_dir is None or not _SAFE_ID.match(consultation_id):
                return None
            path = self._path_for(consultation_id)
            if not path.exists():
                return None
            aggregate = MapSpecAggregate.model_validate_json(path.read_text(encoding="utf-8"))
            self._aggregates[consultation_id] = aggregate
            return aggregate

    def get_map(self, consultation_id: str, map_index: int) -> MapRecord | None:
        aggregate = self.load(consultation_id)
        return aggregate.get(map_index) if aggregate else None

    def next(self, consultation_id: str, map_index: int) -> MapRecord | None:
        aggregate = self.load(consultation_id)
        return aggregate.next(map_index) if aggregate else None

    def prev(self, consultation_id: str, map_index: int) -> MapRecord | None:
        aggregate = self.load(consultation_id)
        return aggregate.prev(map_index) if aggregate else None

    def neighbours(self, consultation_id: str, map_index: int) -> tuple[int | None, int | None]:
        """(prev index, next index) around ``map_index``; None past either end."""
        before = self.prev(consultation_id, map_index)
        after = self.next(consultation_id, map_index)
        return (
            before.map_index if before else None,
            after.map_index if after else None,
        )

    def _path_for(self, consultation_id: str) -> Path | None:
        if self.maps_dir is None:
            return None
        if not _SAFE_ID.match(consultation_id):
            raise ValueError(f"unsafe consultation id: {consultation_id!r}")
        return self.maps_dir / f"{consultation_id}.json"
