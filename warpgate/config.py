"""
Configuration management for FTL Warp Gate.
Environment-based settings using Pydantic BaseSettings.

Settings are built once at process start and handed to every component;
models are frozen so nothing can change them at runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceCredentials(BaseModel):
    """Base URL and basic-auth credentials for an Atlassian service."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(default="", description="Service base URL, without trailing slash")
    username: str = Field(default="", description="Basic auth username")
    password: SecretStr = Field(default=SecretStr(""), description="Basic auth password or API token")
    timeout_seconds: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds")

    @property
    def root_url(self) -> str:
        return self.base_url.rstrip("/")

    def sanitised(self) -> dict:
        """Dump without exposing the password."""
        data = self.model_dump(mode="json")
        data["password"] = "******"
        return data


class WarpGateSettings(BaseSettings):
    """Warp Gate configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="WARPGATE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="API server host")
    port: int = Field(default=8080, description="API server port")

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Log renderer (console, json)"
    )

    # Registry
    properties_path: str = Field(
        default="resources/properties.json",
        description="Path to the FTL project/environment properties file"
    )

    # External services
    jira: ServiceCredentials = Field(default_factory=ServiceCredentials)
    bamboo: ServiceCredentials = Field(default_factory=ServiceCredentials)

    # Workflow timings
    async_delay_seconds: float = Field(
        default=20.0,
        ge=0,
        description="Wait before acting on a webhook (build completion, result availability)"
    )
    production_start_wait_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Assumed start-up time of the idle production colour"
    )
    colour_freshness_minutes: int = Field(
        default=70,
        ge=1,
        description="Maximum age of the production colour signal"
    )
    prelive_history_size: int = Field(
        default=50,
        ge=1,
        description="How many recent prelive deployments to scan for an FTL version"
    )

    def sanitised(self) -> dict:
        """Configuration safe to expose on the status endpoint."""
        data = self.model_dump(mode="json", exclude={"jira", "bamboo"})
        data["jira"] = self.jira.sanitised()
        data["bamboo"] = self.bamboo.sanitised()
        return data


@lru_cache(maxsize=1)
def get_settings() -> WarpGateSettings:
    """Get the process-wide settings instance."""
    return WarpGateSettings()
