"""Master API router — mounts all endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from questmap.api import health, maps, themes

api_router = APIRouter(prefix="/api")

api_router.include_router(health.router)
api_router.include_router(maps.router)
api_router.include_router(themes.router)
