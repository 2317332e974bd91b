"""Map artwork generation through the OpenAI Images API.

With no previous image the request is a fresh ``images.generate``; with one,
it is an ``images.edit`` that continues the previous map's world.
"""

from __future__ import annotations

import base64
import io
import logging

from questmap.config import Settings, settings
from questmap.llm.errors import EmptyPayloadError, ServiceNotConfiguredError

logger = logging.getLogger(__name__)


class OpenAIImageGenerator:
    def __init__(self, cfg: Settings | None = None) -> None:
        self.cfg = cfg or settings

    def _client(self):
        from openai import AsyncOpenAI

        return AsyncOpenAI(api_key=self.cfg.openai_api_key, max_retries=0)

    async def generate(self, prompt: str, previous_image: bytes | None = None) -> bytes:
        if not self.cfg.openai_api_key:
            raise ServiceNotConfiguredError("OPENAI_API_KEY not set")

        client = self._client()
        quality = self.cfg.image_quality if self.cfg.image_model == "gpt-image-1" else "standard"

        if previous_image:
            reference = io.BytesIO(previous_image)
            reference.name = "previous_map.png"
            logger.info("Requesting continuation artwork (%d reference bytes)", len(previous_image))
            response = await client.images.edit(
                model=self.cfg.image_model,
                image=reference,
                prompt=prompt,
                size=self.cfg.image_size,
                quality=quality,
            )
        else:
            logger.info("Requesting fresh artwork")
            response = await client.images.generate(
                model=self.cfg.image_model,
                prompt=prompt,
                size=self.cfg.image_size,
                quality=quality,
            )

        data = getattr(response, "data", None) or []
        if not data:
            raise EmptyPayloadError("image response carried no data")

        b64_data = getattr(data[0], "b64_json", None)
        if b64_data:
            return base64.b64decode(b64_data)

        url = getattr(data[0], "url", None)
        if url:
            return await self._download(url)

        raise EmptyPayloadError("image response had neither b64_json nor url")

    async def _download(self, url: str) -> bytes:
        import httpx

        async with httpx.AsyncClient(timeout=60.0) as http:
            resp = await http.get(url)
            resp.raise_for_status()
            if not resp.content:
                raise EmptyPayloadError("downloaded artwork is empty")
            return resp.content
