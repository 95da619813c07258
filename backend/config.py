"""
Configuration management for AI Company Matcher.
"""

import logging

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Generative oracle
    deepseek_api_key: str = ""
    deepseek_model: str = "deepseek-chat"

    # Enrichment providers
    apollo_api_key: str = ""
    hunter_api_key: str = ""

    # Storage
    database_url: str = "sqlite:///./company_matcher.db"

    # Queue broker (empty = run searches in-process)
    redis_url: str = ""

    # Pipeline settings
    default_max_results: int = 50
    nationwide_threshold: int = 100
    inter_company_delay: float = 1.5
    provider_min_interval: float = 1.0
    flush_every: int = 5
    oracle_timeout: float = 30.0

    # Whole-job retry policy
    queue_max_attempts: int = 3
    queue_backoff_base: float = 2.0

    # Server
    cors_origins: str = "http://localhost:5173"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars


settings = Settings()


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once per process."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
