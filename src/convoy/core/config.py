"""Configuration management for Convoy."""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="CONVOY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # AWS configuration
    aws_region: str = Field("us-east-1", description="AWS region for all clients")
    aws_access_key_id: Optional[str] = Field(None, description="Explicit access key id")
    aws_secret_access_key: Optional[str] = Field(None, description="Explicit secret access key")
    aws_session_token: Optional[str] = Field(None, description="Explicit session token")
    cloudformation_endpoint_url: Optional[str] = Field(None, description="CloudFormation endpoint override")
    s3_endpoint_url: Optional[str] = Field(None, description="S3 endpoint override")

    # Package extraction
    staging_root: Optional[str] = Field(
        None,
        description="Directory packages are extracted under; a temporary directory removed after the run when unset",
    )

    # Stack polling
    status_wait_period: float = Field(
        5.0,
        description="Seconds to sleep between stack status checks",
    )
    stack_timeout: Optional[float] = Field(
        None,
        description="Optional upper bound in seconds for any stack wait; unbounded when unset",
    )

    # Observability
    log_level: str = Field("INFO", description="Minimum log level (DEBUG enables verbose messages)")
    log_format: str = Field("console", description="Log renderer: json or console")
    metrics_textfile: Optional[str] = Field(
        None,
        description="Write Prometheus metrics to this file after the run",
    )

    @field_validator("status_wait_period")
    @classmethod
    def validate_wait_period(cls, v: float) -> float:
        if v < 0:
            raise ValueError("status_wait_period cannot be negative")
        return v

    @field_validator("stack_timeout")
    @classmethod
    def validate_stack_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("stack_timeout must be positive when set")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}")
        return fmt
