"""Shared test fixtures and in-process fakes for the three external services."""

from __future__ import annotations

import io
import json
import re

import pytest
from PIL import Image

from questmap.config import Settings
from questmap.models.checklist import ChecklistItem
from questmap.storage.artwork_store import ArtworkStore


DENTAL_ITEMS = [
    ChecklistItem(title="Brush teeth", description="Twice a day, soft brush", category="hygiene"),
    ChecklistItem(title="Floss", description="Every evening", category="hygiene"),
    ChecklistItem(title="Dentist checkup", description="Book for next month", category="appointment"),
]

RECOVERY_ITEMS = [
    ChecklistItem(title="Take antibiotic", description="One tablet after breakfast", category="medication"),
    ChecklistItem(title="Drink water", description="Two litres daily", category="hydration"),
    ChecklistItem(title="Morning walk", description="20 minutes", category="exercise"),
    ChecklistItem(title="Eat a salad", description="Leafy greens with lunch", category="nutrition"),
    ChecklistItem(title="Blood test", description="Fasting lab work", category="test"),
    ChecklistItem(title="Vitamin D", description="One capsule", category="supplement"),
]


def make_png(width: int = 64, height: int = 96, color: tuple[int, int, int] = (80, 160, 90)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def layout_json(step_count: int, path_points: int = 20) -> str:
    """A vertical route from the bottom (start) to the top (end) with evenly spaced checkpoints."""
    path = [
        {"x": 0.5, "y": round(0.95 - 0.9 * i / (path_points - 1), 4)}
        for i in range(path_points)
    ]
    nodes = [
        {"index": i, "x": 0.5, "y": round(0.95 - 0.9 * i / (step_count - 1), 4)}
        for i in range(step_count)
    ]
    return json.dumps({"path": path, "nodes": nodes})


class FakeTextCompleter:
    def __init__(self, response: str | Exception = "") -> None:
        self.response = response
        self.calls: list[tuple[str, str]] = []

    async def complete(self, prompt: str, task: str = "theme") -> str:
        self.calls.append((prompt, task))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class FakeVisionAnalyzer:
    """Answers with a well-formed layout for the checkpoint count named in the prompt,
    unless scripted ``responses`` say otherwise."""

    def __init__(self, responses: list[str | Exception] | None = None) -> None:
        self.responses = list(responses) if responses else None
        self.calls: list[tuple[bytes, str, str]] = []

    async def analyze(self, image_bytes: bytes, prompt: str, media_type: str = "image/png") -> str:
        self.calls.append((image_bytes, prompt, media_type))
        if self.responses is None:
            step_count = int(re.search(r"EXACTLY (\d+) checkpoints", prompt).group(1))
            return layout_json(step_count)
        response = self.responses[min(len(self.calls), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


class FakeImageGenerator:
    """Returns a fresh PNG per call, or the scripted ``results`` in order."""

    def __init__(self, results: list[bytes | Exception] | None = None) -> None:
        self.results = list(results) if results else None
        self.calls: list[tuple[str, bytes | None]] = []

    async def generate(self, prompt: str, previous_image: bytes | None = None) -> bytes:
        self.calls.append((prompt, previous_image))
        if self.results is None:
            return make_png(color=(len(self.calls) * 20 % 255, 120, 200))
        result = self.results[min(len(self.calls), len(self.results)) - 1]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def dental_items() -> list[ChecklistItem]:
    return list(DENTAL_ITEMS)


@pytest.fixture
def recovery_items() -> list[ChecklistItem]:
    return list(RECOVERY_ITEMS)


@pytest.fixture
def ai_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        anthropic_api_key="test-anthropic",
        openai_api_key="test-openai",
        use_ai_map_generation=True,
        use_ai_theme_detection=False,
        artwork_dir=str(tmp_path / "artwork"),
        artwork_url_prefix="/maps",
        data_dir="",
    )


@pytest.fixture
def artwork_store(tmp_path) -> ArtworkStore:
    return ArtworkStore(tmp_path / "artwork", "/maps")
