"""Run configuration for a load-test session."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoadTestConfig(BaseModel):
    """Immutable configuration supplied by the CLI for one process run."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Target WebSocket endpoint")
    service_id: str = Field(..., description="Value of the service identification header")
    auth_header: Optional[str] = Field(
        default=None, description="Raw credential sent as the Authorization header"
    )
    subscriptions: str = Field(
        default="newHeads", description="Comma-separated subscription types"
    )
    sub_count: int = Field(default=1, ge=1, description="Instances to create per type")
    enable_logging: bool = Field(
        default=False, description="Capture and display the latest raw message"
    )

    @field_validator("url")
    @classmethod
    def _url_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("url must not be empty")
        return value.strip()

    @field_validator("subscriptions")
    @classmethod
    def _has_subscription_type(cls, value: str) -> str:
        if not any(part.strip() for part in value.split(",")):
            raise ValueError("at least one subscription type is required")
        return value

    def subscription_types(self) -> List[str]:
        """Configured types in order, trimmed, with empty entries skipped."""
        return [part.strip() for part in self.subscriptions.split(",") if part.strip()]

    def total_planned_subscriptions(self) -> int:
        return len(self.subscription_types()) * self.sub_count
