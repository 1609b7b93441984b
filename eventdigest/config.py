"""Pydantic Settings — loads configuration from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    openai_api_key: str = ""
    llm_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 60.0

    source_url: str = "https://stepoutbuffalo.com/all-events/"
    target_zip_code: str = "14075"
    extraction_strategy: Literal["llm", "selector"] = "llm"

    # Extraction pacing
    batch_size: int = 30
    batch_delay_min: float = 0.5
    batch_delay_max: float = 1.0
    max_retries: int = 3
    retry_base_delay: float = 1.0

    # Browser
    headless: bool = True
    chromium_executable_path: str = ""
    navigation_timeout_ms: int = 60000
    launch_timeout_ms: int = 30000

    redis_url: str = "redis://localhost:6379"
    result_ttl_seconds: int = 86400
    allowed_callback_hosts: str = ""

    buttondown_api_key: str = ""
    buttondown_api_url: str = "https://api.buttondown.com/v1"
    digest_recipient: str = ""
    digest_max_events: int = 6

    report_output_path: str = "events.json"
    screenshot_path: str = "debug-screenshot.png"
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
