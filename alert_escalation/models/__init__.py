# Alert Models
from alert_escalation.models.alert import (
    FINAL_TIER,
    Alert,
    AlertLevel,
    DispatchOutcome,
    EscalationRecord,
    EscalationTier,
    generate_alert_id,
)
from alert_escalation.models.triggers import (
    TRIGGERS,
    Trigger,
    get_trigger,
    is_valid_type,
)

__all__ = [
    "FINAL_TIER",
    "Alert",
    "AlertLevel",
    "DispatchOutcome",
    "EscalationRecord",
    "EscalationTier",
    "generate_alert_id",
    "TRIGGERS",
    "Trigger",
    "get_trigger",
    "is_valid_type",
]
