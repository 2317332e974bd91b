"""Service ports for the three black-box AI capabilities."""

from __future__ import annotations

from typing import Protocol


class TextCompleter(Protocol):
    """Prompt in, raw text out."""

    async def complete(self, prompt: str, task: str = "theme") -> str: ...


class VisionAnalyzer(Protocol):
    """Image + instruction in, raw text out."""

    async def analyze(self, image_bytes: bytes, prompt: str, media_type: str = "image/png") -> str: ...


class ImageGenerator(Protocol):
    """Prompt (+ optional previous image to continue from) in, image bytes out."""

    async def generate(self, prompt: str, previous_image: bytes | None = None) -> bytes: ...
