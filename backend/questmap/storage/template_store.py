"""Reusable first-map templates keyed by (themeKey, stepCount, promptVersion).

Shared across consultations, so writes go through ``insert_if_absent``: a
create that loses the race returns False and changes nothing.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path

from pydantic import Field

from questmap.models.checklist import ThemeProfile
from questmap.models.map_spec import MapSpecification, WireModel

logger = logging.getLogger(__name__)

TemplateKey = tuple[str, int, int]


class MapTemplate(WireModel):
    theme_key: str
    step_count: int
    prompt_version: int
    specialty: str = ""
    map_spec: MapSpecification
    image_url: str | None = None
    image_path: str | None = None
    theme_profile: ThemeProfile = Field(default_factory=ThemeProfile)
    usage_count: int = 0
    last_used_at: float = 0.0

    @property
    def key(self) -> TemplateKey:
        return (self.theme_key, self.step_count, self.prompt_version)


class TemplateStore:
    """In-memory template table, mirrored to ``templates.json`` when a file is given."""

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path else None
        self._lock = threading.Lock()
        self._templates: dict[TemplateKey, MapTemplate] = {}
        if self.path is not None and self.path.exists():
            self._load()

    def find(self, theme_key: str, step_count: int, prompt_version: int) -> MapTemplate | None:
        with self._lock:
            found = self._templates.get((theme_key, step_count, prompt_version))
            return found.model_copy(deep=True) if found else None

    def insert_if_absent(self, template: MapTemplate) -> bool:
        """Store ``template`` unless its key exists. True when this call created it."""
        with self._lock:
            if template.key in self._templates:
                logger.debug("Template %s already exists; insert skipped", template.key)
                return False
            if not template.last_used_at:
                template.last_used_at = time.time()
            self._templates[template.key] = template.model_copy(deep=True)
            try:
                self._save()
            except OSError:
                del self._templates[template.key]
                raise
        logger.info("Template created for %s", template.key)
        return True

    def record_usage(self, theme_key: str, step_count: int, prompt_version: int) -> MapTemplate | None:
        """Bump usage count and last-used time. Returns the updated template."""
        with self._lock:
            found = self._templates.get((theme_key, step_count, prompt_version))
            if found is None:
                return None
            key = found.key
            self._templates[key] = found.model_copy(
                update={"usage_count": found.usage_count + 1, "last_used_at": time.time()}, deep=True
            )
            try:
                self._save()
            except OSError:
                self._templates[key] = found
                raise
            return self._templates[key].model_copy(deep=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._templates)

    def _load(self) -> None:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            templates = [MapTemplate.model_validate(raw) for raw in data]
        except (OSError, ValueError, TypeError) as e:
            logger.error("Could not load map templates from %s, starting empty: %s", self.path, e)
            return
        for template in templates:
            self._templates[template.key] = template
        logger.info("Loaded %d map templates from %s", len(self._templates), self.path)

    def _save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(
                [t.model_dump(mode="json", by_alias=True) for t in self._templates.values()],
                f,
                indent=2,
                ensure_ascii=False,
            )
