"""FastAPI dependency injection."""

from __future__ import annotations

from functools import lru_cache

from questmap.config import settings
from questmap.engine.pipeline import MapPipeline, create_pipeline
from questmap.engine.themes import ThemeClassifier
from questmap.storage.map_store import MapStore


def get_settings():
    return settings


@lru_cache
def get_map_store() -> MapStore:
    return MapStore(settings.data_dir or None)


@lru_cache
def get_pipeline() -> MapPipeline:
    return create_pipeline(settings, map_store=get_map_store())


def get_theme_classifier() -> ThemeClassifier:
    return get_pipeline().classifier
