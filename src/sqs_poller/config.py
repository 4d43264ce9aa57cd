"""Configuration management for the SQS poller."""

from __future__ import annotations

from functools import lru_cache
from typing import Self

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SQS_POLLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="",
    )

    # Account / region used to build queue ARNs and the SDK client
    region: str = Field(default="us-east-1", description="AWS region")
    account_id: str = Field(default="000000000000", description="AWS account ID for queue ARNs")

    # Endpoint override (LocalStack, ElasticMQ, ...)
    endpoint: str | None = Field(
        default=None, description="Manual SQS endpoint override, e.g. http://localhost:9324"
    )
    access_key_id: SecretStr = Field(default=SecretStr("root"), description="Access key ID")
    secret_access_key: SecretStr = Field(
        default=SecretStr("root"), description="Secret access key"
    )
    emulator_marker: str = Field(
        default="localhost:9324",
        description="Substring of the endpoint that identifies the local XML emulator",
    )

    # Provisioning
    auto_create: bool = Field(default=False, description="Create declared queues at startup")
    create_retries: int = Field(default=5, description="Retries for a failed CreateQueue")
    create_retry_delay_seconds: float = Field(
        default=1.0, description="Fixed delay between CreateQueue attempts"
    )
    emulator_settle_seconds: float = Field(
        default=1.0, description="Wait after creating a queue on the emulator before first use"
    )
    resolve_retry_delay_seconds: float = Field(
        default=10.0, description="Delay between queue URL lookups when no endpoint is set"
    )

    # Polling
    receive_max_messages: int = Field(
        default=10, description="Per-call ReceiveMessage maximum enforced by the backend"
    )
    wait_time_seconds: int = Field(default=5, description="Native long-poll wait time")
    poll_idle_delay_seconds: float = Field(
        default=1.0, description="Pause before the next cycle when a cycle received nothing"
    )
    request_timeout_seconds: float = Field(
        default=30.0, description="HTTP timeout for emulator requests"
    )

    # Function / resource declarations
    definitions_file: str = Field(
        default="sqs-poller.json", description="Path to the functions/resources JSON file"
    )

    # Application
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    # Logging Configuration
    log_to_file: bool = Field(default=False, description="Enable file-based logging")
    log_directory: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10485760,  # 10MB
        description="Max size per log file before rotation",
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of rotated log files to keep"
    )
    log_file_prefix: str = Field(default="sqs_poller", description="Prefix for log file names")

    @field_validator("create_retries")
    @classmethod
    def validate_create_retries(cls, v: int) -> int:
        """Validate the retry count is not negative."""
        if v < 0:
            raise ValueError(f"create_retries must be >= 0, got: {v}")
        return v

    @field_validator("receive_max_messages")
    @classmethod
    def validate_receive_max_messages(cls, v: int) -> int:
        """SQS accepts 1-10 messages per ReceiveMessage call."""
        if not 1 <= v <= 10:
            raise ValueError(f"receive_max_messages must be between 1 and 10, got: {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the log level name."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got: {v}")
        return v.upper()

    @model_validator(mode="after")
    def validate_endpoint(self) -> Self:
        """Strip a trailing slash so synthesized queue URLs stay well formed."""
        if self.endpoint:
            self.endpoint = self.endpoint.rstrip("/")
        return self

    @property
    def is_local_emulator(self) -> bool:
        """Whether the configured endpoint targets the local XML emulator."""
        return bool(self.endpoint) and self.emulator_marker in (self.endpoint or "")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def log_file_path(self) -> str:
        """Get the full log file path."""
        return f"{self.log_directory}/{self.log_file_prefix}.log"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
