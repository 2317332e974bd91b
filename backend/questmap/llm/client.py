"""LangChain ChatAnthropic wrappers for text completion and vision analysis."""

from __future__ import annotations

import base64
import logging

from questmap.config import Settings, settings
from questmap.llm.errors import EmptyPayloadError, ServiceNotConfiguredError
from questmap.llm.model_router import get_model_for_task

logger = logging.getLogger(__name__)


def _content_text(content) -> str:
    """Flatten a LangChain message content (str or list of blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


class AnthropicTextCompleter:
    """Single-shot text completion. No retries: a failure is the caller's fallback trigger."""

    def __init__(self, cfg: Settings | None = None, max_tokens: int = 1024) -> None:
        self.cfg = cfg or settings
        self.max_tokens = max_tokens

    async def complete(self, prompt: str, task: str = "theme") -> str:
        if not self.cfg.anthropic_api_key:
            raise ServiceNotConfiguredError("ANTHROPIC_API_KEY not set")

        from langchain_anthropic import ChatAnthropic
        from langchain_core.messages import HumanMessage, SystemMessage

        llm = ChatAnthropic(
            model=get_model_for_task(task, self.cfg),
            api_key=self.cfg.anthropic_api_key,
            max_tokens=self.max_tokens,
            temperature=0,
            max_retries=0,
        )
        messages = [
            SystemMessage(content="Return strict JSON only. No markdown, no prose outside the JSON object."),
            HumanMessage(content=prompt),
        ]
        response = await llm.ainvoke(messages)
        text = _content_text(response.content).strip()
        if not text:
            raise EmptyPayloadError(f"empty completion for task {task!r}")
        return text


class AnthropicVisionAnalyzer:
    """Image + instruction → text, via Claude vision."""

    def __init__(self, cfg: Settings | None = None, max_tokens: int = 2000) -> None:
        self.cfg = cfg or settings
        self.max_tokens = max_tokens

    async def analyze(self, image_bytes: bytes, prompt: str, media_type: str = "image/png") -> str:
        if not self.cfg.anthropic_api_key:
            raise ServiceNotConfiguredError("ANTHROPIC_API_KEY not set")
        if not image_bytes:
            raise EmptyPayloadError("no image bytes to analyze")

        from langchain_anthropic import ChatAnthropic
        from langchain_core.messages import HumanMessage

        llm = ChatAnthropic(
            model=get_model_for_task("layout", self.cfg),
            api_key=self.cfg.anthropic_api_key,
            max_tokens=self.max_tokens,
            temperature=0.3,
            max_retries=0,
        )
        message = HumanMessage(
            content=[
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": media_type,
                        "data": base64.b64encode(image_bytes).decode("ascii"),
                    },
                },
                {"type": "text", "text": prompt},
            ]
        )
        response = await llm.ainvoke([message])
        text = _content_text(response.content).strip()
        if not text:
            raise EmptyPayloadError("empty vision response")
        logger.debug("Vision response: %d chars", len(text))
        return text
