"""Configuration management using pydantic-settings."""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    loadtest_log_level: str = Field(
        default="WARNING", description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    # Endpoint
    loadtest_url_template: str = Field(
        default="wss://{service}.rpc.grove.city/v1/{app_id}",
        description="Template used to build the target URL from service and application ID",
    )
    loadtest_supported_services: List[str] = Field(
        default_factory=lambda: ["xrplevm"], description="Services accepted by --service"
    )
    loadtest_service_header: str = Field(
        default="Target-Service-Id", description="Header carrying the service identifier"
    )

    # Timing
    loadtest_dial_retry_delay: float = Field(
        default=5.0, description="Seconds to wait after a failed dial"
    )
    loadtest_read_retry_delay: float = Field(
        default=2.0, description="Seconds to wait after a read failure before redialing"
    )
    loadtest_subscription_send_interval: float = Field(
        default=0.1, description="Seconds between consecutive subscribe requests"
    )
    loadtest_display_interval: float = Field(
        default=1.0, description="Seconds between dashboard refreshes"
    )

    # Dashboard
    loadtest_history_display_limit: int = Field(
        default=5, description="Number of most recent connections shown in the history"
    )
    loadtest_latest_message_max_lines: int = Field(
        default=40, description="Maximum lines of the latest message shown with --log"
    )

    def build_url(self, service: str, app_id: str) -> str:
        """Construct the endpoint URL for a service and application ID."""
        return self.loadtest_url_template.format(service=service, app_id=app_id)


# Global settings instance
settings = Settings()
