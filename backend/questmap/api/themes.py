"""POST /api/themes/classify — consultation theme detection."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from questmap.dependencies import get_theme_classifier
from questmap.engine.themes import ThemeClassifier
from questmap.models.checklist import ThemeProfile
from questmap.models.requests import ClassifyThemeRequest

router = APIRouter(prefix="/themes")


@router.post("/classify", response_model=ThemeProfile)
async def classify_theme(
    req: ClassifyThemeRequest,
    classifier: ThemeClassifier = Depends(get_theme_classifier),
) -> ThemeProfile:
    return await classifier.classify(req.items, req.context)
