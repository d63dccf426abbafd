"""Alert escalation engine: Telegram -> WhatsApp -> voice call."""

from alert_escalation.models.alert import (
    Alert,
    AlertLevel,
    DispatchOutcome,
    EscalationRecord,
    EscalationTier,
)
from alert_escalation.schemas.engine_config import EngineConfig, EngineConfigUpdate
from alert_escalation.schemas.stats import AlertStats
from alert_escalation.services.alert_engine import AlertEngine, engine_lifespan

__all__ = [
    "Alert",
    "AlertEngine",
    "AlertLevel",
    "AlertStats",
    "DispatchOutcome",
    "EngineConfig",
    "EngineConfigUpdate",
    "EscalationRecord",
    "EscalationTier",
    "engine_lifespan",
]
