"""Escalation engine configuration schemas."""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

from alert_escalation.config import Settings


def _check_timezone(value: str | None) -> str | None:
    if value is None:
        return value
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as e:
        msg = f"unknown timezone: {value}"
        raise ValueError(msg) from e
    return value


class EngineConfig(BaseModel):
    """Runtime configuration of the escalation engine.

    Immutable: ``AlertEngine.update_config`` swaps in a new instance, so a
    config handed out by ``get_config`` never changes underneath the caller.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    tier1_delay_ms: int = Field(
        default=15 * 60 * 1000,
        gt=0,
        description="Delay before escalating primary chat -> secondary chat.",
    )
    tier2_delay_ms: int = Field(
        default=30 * 60 * 1000,
        gt=0,
        description="Delay before escalating secondary chat -> voice.",
    )
    dnd_start_hour: int = Field(default=23, ge=0, le=23)
    dnd_end_hour: int = Field(default=7, ge=0, le=23)
    dnd_timezone: str | None = Field(
        default=None,
        description="IANA zone for the DND window; host local time when unset.",
    )
    bypass_dnd_for_critical: bool = True
    enabled: bool = True
    max_alerts_per_hour: int = Field(default=10, ge=0)
    alert_cooldown_ms: int = Field(default=5 * 60 * 1000, ge=0)
    ack_retention_ms: int = Field(
        default=60 * 60 * 1000,
        gt=0,
        description="How long an acknowledged alert stays queryable.",
    )

    @field_validator("dnd_timezone")
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        """Reject zone names the tz database does not know."""
        return _check_timezone(value)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineConfig":
        """Build the runtime config from environment settings."""
        return cls(
            tier1_delay_ms=settings.escalate_telegram_to_whatsapp_ms,
            tier2_delay_ms=settings.escalate_whatsapp_to_voice_ms,
            dnd_start_hour=settings.dnd_start_hour,
            dnd_end_hour=settings.dnd_end_hour,
            dnd_timezone=settings.dnd_timezone,
            bypass_dnd_for_critical=settings.bypass_dnd_for_critical,
            enabled=settings.auto_call_enabled,
            max_alerts_per_hour=settings.max_alerts_per_hour,
            alert_cooldown_ms=settings.alert_cooldown_ms,
            ack_retention_ms=settings.ack_retention_minutes * 60 * 1000,
        )


class EngineConfigUpdate(BaseModel):
    """Partial configuration update.

    All fields are optional; only provided fields are applied. Unknown
    keys are rejected so a typo never silently becomes a no-op.
    """

    model_config = ConfigDict(extra="forbid")

    tier1_delay_ms: int | None = Field(default=None, gt=0)
    tier2_delay_ms: int | None = Field(default=None, gt=0)
    dnd_start_hour: int | None = Field(default=None, ge=0, le=23)
    dnd_end_hour: int | None = Field(default=None, ge=0, le=23)
    dnd_timezone: str | None = None
    bypass_dnd_for_critical: bool | None = None
    enabled: bool | None = None
    max_alerts_per_hour: int | None = Field(default=None, ge=0)
    alert_cooldown_ms: int | None = Field(default=None, ge=0)
    ack_retention_ms: int | None = Field(default=None, gt=0)

    @field_validator("dnd_timezone")
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        """Reject zone names the tz database does not know."""
        return _check_timezone(value)

    def apply_to(self, config: EngineConfig) -> EngineConfig:
        """Return a new config with the provided fields merged in."""
        merged = config.model_dump()
        merged.update(self.model_dump(exclude_unset=True))
        return EngineConfig.model_validate(merged)
