"""Pydantic Settings — loads configuration from environment variables."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from noon.scan.models import ScanConfig


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    api_key: str

    redis_url: str = "redis://localhost:6379"
    allowed_callback_hosts: str = ""
    result_ttl_seconds: int = 3600

    min_length: int = 5
    max_length: int = 30
    concurrency_limit: int = Field(default=4, ge=1)
    fetch_timeout_seconds: float = 15.0
    user_agent: str = "noon-palindrome-scanner/0.1.0"
    log_level: str = "INFO"

    def scan_config(self) -> ScanConfig:
        """Default detection bounds, clamped and ordered."""
        return ScanConfig(min_length=self.min_length, max_length=self.max_length)


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
