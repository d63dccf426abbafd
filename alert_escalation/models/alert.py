"""In-memory alert model.

An alert is created once by the engine and mutated only by the
escalation scheduler (step and history) and by acknowledgment.
"""

import copy
import enum
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

SHORT_ID_LENGTH = 6

_ID_SUFFIX_LENGTH = 9
_ID_ALPHABET = string.digits + string.ascii_lowercase


class AlertLevel(str, enum.Enum):
    """Severity level, which decides how far an alert escalates."""

    INFO = "info"  # Primary chat only
    WARNING = "warning"  # Full chain, voice subject to DND
    CRITICAL = "critical"  # Full chain, may bypass DND
    EMERGENCY = "emergency"  # Straight to voice


class EscalationTier(int, enum.Enum):
    """Ordered notification channels."""

    TELEGRAM = 0
    WHATSAPP = 1
    VOICE = 2

    @property
    def channel(self) -> str:
        """Sender key for this tier."""
        return self.name.lower()


FINAL_TIER = EscalationTier.VOICE


class DispatchOutcome(str, enum.Enum):
    """Result of one tier dispatch."""

    SENT = "sent"
    FAILED = "failed"
    SKIPPED_DND = "skipped_dnd"
    SKIPPED_NO_SENDER = "skipped_no_sender"


@dataclass(frozen=True)
class EscalationRecord:
    """One entry of an alert's escalation history."""

    tier: EscalationTier
    timestamp: datetime
    outcome: DispatchOutcome


@dataclass
class Alert:
    """An alert in flight."""

    id: str
    type: str
    category: str
    level: AlertLevel
    message: str
    details: str
    created_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)
    acknowledged: bool = False
    acknowledged_at: datetime | None = None
    escalation_step: int = 0
    escalation_history: list[EscalationRecord] = field(default_factory=list)

    @property
    def short_id(self) -> str:
        """Last characters of the id, used in human acknowledgment replies."""
        return self.id[-SHORT_ID_LENGTH:]

    def snapshot(self) -> "Alert":
        """Return a copy that shares no mutable state with this alert."""
        return copy.deepcopy(self)


def generate_alert_id() -> str:
    """Generate a time-ordered unique id: ``<epoch-ms>-<random base36>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"{time.time_ns() // 1_000_000}-{suffix}"
