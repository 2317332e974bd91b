"""Task → model selection. Cheap model for theme classification, mid-tier for layout tracing."""

from __future__ import annotations

from questmap.config import Settings, settings

_TASK_MODEL_MAP = {
    "theme": "cheap",
    "layout": "mid",
}


def get_model_for_task(task: str, cfg: Settings | None = None) -> str:
    cfg = cfg or settings
    tier = _TASK_MODEL_MAP.get(task, "cheap")
    if tier == "mid":
        return cfg.model_mid
    return cfg.model_cheap
