"""Application configuration using Pydantic Settings.

Field names match the environment variables of the deployed bot
(``ESCALATE_TELEGRAM_TO_WHATSAPP_MS``, ``DND_START_HOUR`` and so on).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Escalation timing
    escalate_telegram_to_whatsapp_ms: int = 15 * 60 * 1000
    escalate_whatsapp_to_voice_ms: int = 30 * 60 * 1000

    # Do Not Disturb (voice tier only)
    dnd_start_hour: int = 23
    dnd_end_hour: int = 7
    dnd_timezone: str | None = None  # IANA name; host local time when unset
    bypass_dnd_for_critical: bool = True

    # Engine switch and rate limiting
    auto_call_enabled: bool = True
    max_alerts_per_hour: int = 10
    alert_cooldown_ms: int = 5 * 60 * 1000  # Same alert type

    # How long an acknowledged alert stays queryable before purge
    ack_retention_minutes: int = 60

    # Logging
    log_format: str = "json"  # 'json' or 'text'
    log_level: str = "INFO"
    service_name: str = "alert-escalation"

    # Telegram transport (primary chat tier)
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""


settings = Settings()
