"""Strict environment validation for worker configuration."""

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_BASE_URL = "https://mapant.fr/api"
DEFAULT_CASSINI_IMAGE = "nicorio42/cassini"


@dataclass(frozen=True)
class WorkerCredentials:
    """Worker identity used to authenticate every poll request."""

    worker_id: str
    token: str

    @property
    def bearer_token(self) -> str:
        return f"{self.worker_id}.{self.token}"

    def __repr__(self) -> str:
        return f"WorkerCredentials(worker_id={self.worker_id!r}, token='***')"


class WorkerConfig(BaseSettings):
    """Worker configuration with strict validation.

    Loaded once at startup from ``MAPANT_*`` environment variables (or a
    ``.env`` file) and never mutated afterwards. Fails fast if a required
    value is missing.
    """

    model_config = SettingsConfigDict(
        env_prefix="MAPANT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Worker identity (required)
    api_worker_id: str = Field(
        min_length=1,
        description="Worker identifier issued by the mapant API",
    )
    api_token: str = Field(
        min_length=1,
        description="Secret token paired with the worker identifier",
    )

    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        description="Base URL of the mapant API",
    )

    api_timeout_seconds: Annotated[float, Field(gt=0, le=3600)] | None = Field(
        default=30.0,
        description="Timeout for next-job calls, None to wait indefinitely",
    )

    no_job_retry_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Delay before polling again after a no-job-left response",
    )

    failed_job_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        le=300,
        description="Pause before polling again after a job failed",
    )

    work_dir: Path = Field(
        default=Path("."),
        description="Directory holding lidar-files/ and lidar-step/",
    )

    # External processing tool
    cassini_use_docker: bool = Field(
        default=True,
        description="Run cassini inside its container image instead of a local binary",
    )
    cassini_docker_image: str = Field(default=DEFAULT_CASSINI_IMAGE, min_length=1)
    cassini_command: str = Field(default="cassini", min_length=1)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_file: str | None = Field(
        default=None,
        description="Optional file receiving a copy of every log line",
    )

    @field_validator("api_worker_id", "api_token")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only credentials."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("api_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Basic URL validation."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @property
    def credentials(self) -> WorkerCredentials:
        """Credentials for the dispatch endpoint."""
        return WorkerCredentials(worker_id=self.api_worker_id, token=self.api_token)
