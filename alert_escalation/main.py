"""Composition root for the alert escalation engine.

Builds one configured ``AlertEngine`` from environment settings. The
host application calls ``build_engine`` once at startup, registers its
WhatsApp and voice senders, and passes the engine to anything that
raises alerts.
"""

from collections.abc import Mapping

from alert_escalation.config import Settings, settings
from alert_escalation.logging_config import get_logger, setup_logging
from alert_escalation.schemas.engine_config import EngineConfig
from alert_escalation.services.alert_engine import AlertEngine
from alert_escalation.services.channel_dispatcher import Sender, VoiceCapability
from alert_escalation.services.telegram_sender import TelegramSender

logger = get_logger(__name__)


def build_engine(
    app_settings: Settings | None = None,
    senders: Mapping[str, Sender] | None = None,
    voice_capability: VoiceCapability | None = None,
) -> AlertEngine:
    """Configure logging and construct the engine.

    A Telegram sender is wired in automatically when a bot token and chat
    id are configured; entries in ``senders`` take precedence.

    Raises:
        pydantic.ValidationError: If the settings hold malformed values.
    """
    app_settings = app_settings or settings

    setup_logging(
        log_format=app_settings.log_format,
        log_level=app_settings.log_level,
        service_name=app_settings.service_name,
    )

    channel_senders: dict[str, Sender] = {}
    if app_settings.telegram_bot_token and app_settings.telegram_chat_id:
        channel_senders["telegram"] = TelegramSender(
            app_settings.telegram_bot_token,
            app_settings.telegram_chat_id,
        )
    else:
        logger.warning("Telegram sender not configured")
    channel_senders.update(senders or {})

    return AlertEngine(
        config=EngineConfig.from_settings(app_settings),
        senders=channel_senders,
        voice_capability=voice_capability,
    )
