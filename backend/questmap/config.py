"""Application configuration from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings

_DEFAULT_ARTWORK_DIR = Path(__file__).parent / "data" / "maps"


class Settings(BaseSettings):
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    questmap_env: str = "development"
    questmap_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Feature switches (off unless explicitly enabled)
    use_ai_map_generation: bool = False
    use_ai_theme_detection: bool = False

    # Model routing
    model_cheap: str = "claude-haiku-4-5-20251001"
    model_mid: str = "claude-sonnet-4-5-20250929"

    # Image generation
    image_model: str = "gpt-image-1"
    image_size: str = "1024x1536"  # portrait, phone-first
    image_quality: str = "high"

    # Generated artwork on disk + its public URL prefix
    artwork_dir: str = str(_DEFAULT_ARTWORK_DIR)
    artwork_url_prefix: str = "/maps"

    # Downscaling before vision analysis
    vision_max_side: int = 1024
    vision_jpeg_quality: int = 80

    # Optional caller-imposed timeout for every external call
    ai_call_timeout_seconds: float | None = None

    # Empty = in-memory stores
    data_dir: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def ai_map_generation_ready(self) -> bool:
        """True when the artwork + layout path has everything it needs."""
        return bool(
            self.use_ai_map_generation and self.openai_api_key and self.anthropic_api_key
        )

    @property
    def ai_theme_detection_ready(self) -> bool:
        return bool(self.use_ai_theme_detection and self.anthropic_api_key)


settings = Settings()
