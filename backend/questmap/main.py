"""FastAPI app factory."""

from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from questmap.config import settings

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.questmap_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)


def create_app() -> FastAPI:
    app = FastAPI(
        title="QuestMap",
        description="Care-plan checklists turned into game-style journey maps",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from questmap.api.router import api_router

    app.include_router(api_router)

    # Generated artwork is referenced as {artwork_url_prefix}/{filename}
    artwork_dir = Path(settings.artwork_dir)
    artwork_dir.mkdir(parents=True, exist_ok=True)
    app.mount(settings.artwork_url_prefix, StaticFiles(directory=artwork_dir), name="maps")

    return app


app = create_app()
