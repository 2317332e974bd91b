"""Map generation + navigation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from questmap.dependencies import get_map_store, get_pipeline
from questmap.engine.pipeline import MapPipeline
from questmap.models.aggregate import MapSpecAggregate
from questmap.models.requests import GenerateMapsRequest
from questmap.models.responses import MapPageResponse
from questmap.storage.map_store import MapStore

router = APIRouter(prefix="/maps")


@router.post("/generate", response_model=MapSpecAggregate)
async def generate_maps(
    req: GenerateMapsRequest,
    pipeline: MapPipeline = Depends(get_pipeline),
) -> MapSpecAggregate:
    return await pipeline.generate(req.items, req.context, req.consultation_id)


@router.get("/{consultation_id}", response_model=MapSpecAggregate)
async def get_maps(consultation_id: str, store: MapStore = Depends(get_map_store)) -> MapSpecAggregate:
    aggregate = store.load(consultation_id)
    if aggregate is None:
        raise HTTPException(status_code=404, detail=f"No maps for consultation {consultation_id}")
    return aggregate


@router.get("/{consultation_id}/{map_index}", response_model=MapPageResponse)
async def get_map(
    consultation_id: str,
    map_index: int,
    store: MapStore = Depends(get_map_store),
) -> MapPageResponse:
    aggregate = store.load(consultation_id)
    record = aggregate.get(map_index) if aggregate else None
    if record is None:
        raise HTTPException(status_code=404, detail=f"Map {map_index} not found for {consultation_id}")

    prev_index, next_index = store.neighbours(consultation_id, map_index)
    return MapPageResponse(
        map=record,
        prev_index=prev_index,
        next_index=next_index,
        total_maps=aggregate.total_maps,
    )
