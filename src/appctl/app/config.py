"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from appctl.core.domain.app import DEFAULT_STATE_TIMEOUT


class RemoteConfig(BaseSettings):
    """Middleware connection configuration.

    Job polling: interval starts at job_poll_initial, grows by
    job_poll_multiplier per poll, capped at job_poll_max.
    """

    model_config = SettingsConfigDict(env_prefix="REMOTE_")

    url: str = Field(default="ws://truenas.local/api/current")
    api_key: str = Field(default="")
    verify_ssl: bool = Field(default=True)

    call_timeout: float = Field(default=30.0)  # seconds (single RPC round-trip)
    calls_per_minute: int = Field(default=300)  # 0 disables pacing
    job_timeout: float | None = Field(default=None)  # seconds; None waits until the job ends

    job_poll_initial: float = Field(default=0.5)  # seconds
    job_poll_max: float = Field(default=10.0)  # seconds
    job_poll_multiplier: float = Field(default=1.5)

    # Retry (non-mutating calls only)
    max_retries: int = Field(default=3)
    retry_base_delay: float = Field(default=2.0)  # seconds
    retry_max_delay: float = Field(default=30.0)  # seconds


class ReconcileConfig(BaseSettings):
    """Reconciliation defaults."""

    model_config = SettingsConfigDict(env_prefix="RECONCILE_")

    default_state_timeout: int = Field(default=DEFAULT_STATE_TIMEOUT)  # seconds


class ServerConfig(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8600)


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Standard fields added to all logs:
    - schema_version: Log schema version for backwards compatibility
    - service: Service name (appctl-controller)

    Rate limiting:
    - Prevents log storms from repeated messages
    - ERROR logs bypass rate limiting (always logged)
    """

    model_config = SettingsConfigDict(env_prefix="LOGGING_")

    level: str = Field(default="INFO")
    schema_version: str = Field(default="1.0")
    slow_threshold_ms: float = Field(default=30000.0)  # lifecycle ops block on jobs
    rate_limit_per_minute: int = Field(default=100)
    service_name: str = Field(default="appctl-controller")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="APPCTL_",
        env_nested_delimiter="__",
    )

    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    reconcile: ReconcileConfig = Field(default_factory=ReconcileConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_settings() -> Settings:
    return Settings()
