"""Alert statistics schema."""

from pydantic import BaseModel, Field

from alert_escalation.models.alert import AlertLevel


class AlertStats(BaseModel):
    """Snapshot of pending alerts and rate-limit headroom."""

    pending: int
    by_level: dict[AlertLevel, int]
    by_category: dict[str, int]
    recent_alerts: int = Field(description="Alerts created in the last hour.")
    rate_limit_remaining: int = Field(
        description="Alerts that may still be created this hour."
    )
