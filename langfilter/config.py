"""Centralised, env-driven configuration using pydantic-settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings
from pydantic import Field


# Preset languages offered to users when picking the allow-list.
LANGUAGES: dict[str, str] = {
    "en": "English",
    "ko": "Korean",
    "ja": "Japanese",
    "zh": "Chinese",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "pt": "Portuguese",
    "ru": "Russian",
    "hi": "Hindi",
    "ar": "Arabic",
    "it": "Italian",
    "th": "Thai",
    "vi": "Vietnamese",
    "id": "Indonesian",
    "tr": "Turkish",
}


class Settings(BaseSettings):
    """All tunables are loaded from environment variables (or .env file)."""

    # ── Scheduling ──────────────────────────────────────────────────────────
    debounce_ms: int = Field(default=200, alias="DEBOUNCE_MS")
    batch_size: int = Field(default=20, alias="BATCH_SIZE")
    batch_yield_ms: int = Field(default=10, alias="BATCH_YIELD_MS")

    # ── Classification ──────────────────────────────────────────────────────
    sample_length: int = Field(default=200, alias="SAMPLE_LENGTH")
    cache_key_length: int = Field(default=100, alias="CACHE_KEY_LENGTH")
    fallback_min_percentage: float = Field(
        default=40.0, alias="FALLBACK_MIN_PERCENTAGE"
    )
    fallback_high_percentage: float = Field(
        default=70.0, alias="FALLBACK_HIGH_PERCENTAGE"
    )

    # ── Fallback detector (langdetect) ─────────────────────────────────────
    use_fallback_detector: bool = Field(default=True, alias="USE_FALLBACK_DETECTOR")
    langdetect_seed: int = Field(default=0, alias="LANGDETECT_SEED")

    # ── Filter settings snapshot (optional, read at startup) ───────────────
    settings_file: str = Field(default="", alias="SETTINGS_FILE")
    initial_context: str = Field(default="default", alias="INITIAL_CONTEXT")

    # ── Service / client ────────────────────────────────────────────────────
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    core_url: str = Field(default="http://127.0.0.1:8000", alias="CORE_URL")

    # ── Logging ─────────────────────────────────────────────────────────────
    log_path: str = Field(default="logs/decisions.log", alias="LOG_PATH")

    model_config = {
        "env_file": ".env",
        "populate_by_name": True,
        "extra": "ignore",
    }


# Module-level singleton – import this everywhere
settings = Settings()
