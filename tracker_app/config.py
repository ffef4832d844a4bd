from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = False

    # Application
    app_name: str = "Dig Tracker"
    app_version: str = "1.0.0"

    # Log tailing
    log_file_path: str = "/usr/local/nginx/logs/dig.log"
    worker_count: int = 5  # Parser workers, also the capacity of every queue
    tail_poll_interval: float = 3.0  # Seconds to wait at end of file
    tail_from_end: bool = False  # Start at the end of the file instead of the beginning
    tail_open_retries: int = 5
    tail_open_backoff: float = 1.0  # Doubled after every failed open

    # Parsing / routing
    recognized_schemes: List[str] = ["http://", "https://"]
    empty_record_policy: str = "forward"  # Options: "forward", "drop"

    # Dedup store settings
    dedup_backend: str = "redis"  # Options: "redis", "memory"
    redis_url: str = "redis://localhost:6379/0"
    dedup_key_prefix: str = "uv_hpll_"
    dedup_ttl: int = 86400  # Uniqueness window in seconds (1 day)
    dedup_ping_interval: float = 3.0
    dedup_pool_size: Optional[int] = None  # Defaults to 2 * worker_count
    dedup_failure_policy: str = "fail_closed"  # Options: "fail_closed", "fail_open"

    # Sink settings
    sink_backend: str = "redis"  # Options: "redis", "memory", "log"
    sink_key_prefix: str = ""
    bucket_granularities: List[str] = ["day", "hour", "minute"]
    empty_route_label: str = "none"

    # Diagnostics
    log_level: str = "INFO"
    diagnostic_log_path: Optional[str] = None  # stdout when unset
    log_json: bool = False

    # Lifecycle
    shutdown_timeout: float = 10.0

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("worker_count")
    @classmethod
    def _positive_workers(cls, value: int) -> int:
        if value < 1:
            raise ValueError("worker_count must be at least 1")
        return value

    @property
    def effective_pool_size(self) -> int:
        """Dedup connection pool size (two connections per worker by default)"""
        return self.dedup_pool_size or 2 * self.worker_count


# Create settings instance
settings = Settings()
