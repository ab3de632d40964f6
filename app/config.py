"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Firecrawl backend
    firecrawl_api_url: Optional[str] = None  # set => self-hosted, no credit metering
    firecrawl_api_key: Optional[str] = None
    firecrawl_timeout_seconds: float = 60.0

    # Retry / backoff (delays in milliseconds)
    firecrawl_retry_max_attempts: int = 3
    firecrawl_retry_initial_delay: int = 1000
    firecrawl_retry_max_delay: int = 10000
    firecrawl_retry_backoff_factor: float = 2.0

    # Credit monitoring
    firecrawl_credit_warning_threshold: int = 1000
    firecrawl_credit_critical_threshold: int = 5000

    # Server
    port: int = 3000
    log_level: str = "INFO"

    # Job retention (0 keeps finished jobs for the process lifetime)
    job_retention_ttl_hours: int = 0
    job_retention_interval_seconds: int = 300

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_self_hosted(self) -> bool:
        return bool(self.firecrawl_api_url)


settings = Settings()
