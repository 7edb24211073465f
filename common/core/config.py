from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.core.constants import Environment
from common.core.exceptions import ConfigError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Environment Profile
    environment: Environment = Environment.LOCAL

    # API Settings
    app_name: str = "lambda-operator"
    api_version: str = "0.1.0"
    http_host: str = "0.0.0.0"
    http_port: int = Field(default=8080, ge=0, le=65535)
    log_level: str = "INFO"

    # Namespace used by POST /invoke/{taskName}
    default_namespace: str = Field(default="default", validation_alias="NAMESPACE")

    # Task custom resource coordinates
    task_group: str = "lambda.example.com"
    task_version: str = "v1"
    task_plural: str = "tasks"

    # OpenTelemetry
    otel_service_name: str = "lambda-operator"
    otel_exporter_otlp_endpoint: Optional[str] = None  # spans are exported when set

    @property
    def docs_enabled(self) -> bool:
        """Only expose OpenAPI docs in local development."""
        return self.environment == Environment.LOCAL


def load_settings() -> Settings:
    """Load settings from the environment, raising ConfigError when invalid."""
    try:
        return Settings()
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) for err in e.errors()
        )
        raise ConfigError(f"Invalid settings: {fields}") from e


@lru_cache
def get_settings() -> Settings:
    return load_settings()
