# Escalation Services
from alert_escalation.services.alert_engine import AlertEngine, engine_lifespan
from alert_escalation.services.alert_registry import AlertRegistry
from alert_escalation.services.channel_dispatcher import (
    ChannelDispatcher,
    Sender,
    VoiceCapability,
)
from alert_escalation.services.dnd_policy import DNDPolicy
from alert_escalation.services.escalation_scheduler import EscalationScheduler
from alert_escalation.services.rate_limiter import RateLimiter
from alert_escalation.services.telegram_sender import (
    TelegramSender,
    TelegramSenderError,
)

__all__ = [
    "AlertEngine",
    "engine_lifespan",
    "AlertRegistry",
    "ChannelDispatcher",
    "Sender",
    "VoiceCapability",
    "DNDPolicy",
    "EscalationScheduler",
    "RateLimiter",
    "TelegramSender",
    "TelegramSenderError",
]
