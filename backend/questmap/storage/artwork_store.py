"""Generated artwork on disk, addressed by a public URL."""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path

from questmap.config import settings

logger = logging.getLogger(__name__)


def _safe_name(value: str) -> str:
    return re.sub(r"[^a-z0-9_-]+", "_", value.lower()).strip("_") or "map"


@dataclass
class Artwork:
    """Image bytes plus where they live. ``data`` feeds the next chunk's continuation."""

    data: bytes | None
    path: str | None = None
    url: str | None = None


class ArtworkStore:
    def __init__(self, directory: Path | str | None = None, url_prefix: str | None = None) -> None:
        self.directory = Path(directory or settings.artwork_dir)
        self.url_prefix = (url_prefix if url_prefix is not None else settings.artwork_url_prefix).rstrip("/")

    def save(self, data: bytes, theme_key: str, step_count: int) -> Artwork:
        """Write ``data`` as ``map-{themeKey}-{stepCount}-{uuid}.png``."""
        self.directory.mkdir(parents=True, exist_ok=True)
        filename = f"map-{_safe_name(theme_key)}-{step_count}-{uuid.uuid4().hex}.png"
        path = self.directory / filename
        path.write_bytes(data)
        logger.info("Saved artwork %s (%d bytes)", filename, len(data))
        return Artwork(data=data, path=str(path), url=f"{self.url_prefix}/{filename}")

    def load(self, path: str | None) -> bytes | None:
        """Read artwork back; None when the file is gone."""
        if not path:
            return None
        file = Path(path)
        if not file.is_file():
            logger.warning("Artwork file missing: %s", path)
            return None
        return file.read_bytes()
