"""Tier dispatch: format an alert and hand it to the tier's sender.

Every call records exactly one history entry on the alert, whatever the
outcome. Sender errors are absorbed here and never reach the scheduler.
"""

from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Protocol

from alert_escalation.logging_config import get_logger
from alert_escalation.models.alert import (
    Alert,
    AlertLevel,
    DispatchOutcome,
    EscalationRecord,
    EscalationTier,
)
from alert_escalation.services.dnd_policy import DNDPolicy

logger = get_logger(__name__)

Sender = Callable[[str], Awaitable[bool | None]]

CHANNELS = tuple(tier.channel for tier in EscalationTier)

# Level -> emoji badge
LEVEL_EMOJI: dict[AlertLevel, str] = {
    AlertLevel.INFO: "\u2139\ufe0f",  # ℹ️
    AlertLevel.WARNING: "\u26a0\ufe0f",  # ⚠️
    AlertLevel.CRITICAL: "\U0001f534",  # 🔴
    AlertLevel.EMERGENCY: "\U0001f6a8",  # 🚨
}
DEFAULT_EMOJI = "\U0001f4e2"  # 📢

ESCALATED_PREFIX = "ESCALATED"


class VoiceCapability(Protocol):
    """Reports whether voice calls can currently be placed."""

    def is_available(self) -> bool: ...


def format_timestamp(moment: datetime) -> str:
    """Render a timestamp in local time, day first."""
    return moment.astimezone().strftime("%d/%m/%Y, %H:%M:%S")


def format_alert_message(alert: Alert, prefix: str = "") -> str:
    """Format an alert for a chat channel.

    Args:
        alert: The alert being sent.
        prefix: Optional tag shown before the level (e.g. ``ESCALATED``).

    Returns:
        Markdown message string.
    """
    emoji = LEVEL_EMOJI.get(alert.level, DEFAULT_EMOJI)
    prefix_str = f"[{prefix}] " if prefix else ""

    lines = [
        f"{emoji} {prefix_str}*{alert.level.value.upper()}*: {alert.message}",
        "",
        alert.details,
        "",
        f"\u23f0 {format_timestamp(alert.created_at)}",
        f"\U0001f3f7\ufe0f Type: {alert.type}",
    ]

    if alert.escalation_history:
        steps = " -> ".join(record.tier.channel for record in alert.escalation_history)
        lines.append(f"\U0001f4ca Escalation: {steps}")

    lines.append("")
    lines.append(f'_Reply "ack {alert.short_id}" to acknowledge_')
    return "\n".join(lines)


def format_voice_message(alert: Alert) -> str:
    """Plain sentence read out on a voice call."""
    return f"{alert.message}. {alert.details}"


class ChannelDispatcher:
    """Sends one tier's notification and records the outcome."""

    def __init__(
        self,
        dnd_policy: DNDPolicy,
        senders: Mapping[str, Sender] | None = None,
        voice_capability: VoiceCapability | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._dnd = dnd_policy
        self._senders: dict[str, Sender] = {}
        self._voice_capability = voice_capability
        self._clock = clock or (lambda: datetime.now(UTC))
        if senders:
            self.register_senders(senders)

    def register_senders(
        self,
        senders: Mapping[str, Sender],
        voice_capability: VoiceCapability | None = None,
    ) -> None:
        """Merge senders into the channel map.

        Raises:
            ValueError: If a key is not one of the known channels.
        """
        unknown = set(senders) - set(CHANNELS)
        if unknown:
            msg = f"unknown channels: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        self._senders.update(senders)
        if voice_capability is not None:
            self._voice_capability = voice_capability

        logger.info(
            "Senders registered",
            **{channel: channel in self._senders for channel in CHANNELS},
        )

    async def dispatch(self, alert: Alert, tier: EscalationTier) -> DispatchOutcome:
        """Send ``alert`` on ``tier`` and append the outcome to its history.

        Args:
            alert: The alert to notify about.
            tier: Channel to use.

        Returns:
            The recorded DispatchOutcome.
        """
        timestamp = self._clock()
        outcome = await self._deliver(alert, tier, timestamp)
        alert.escalation_history.append(EscalationRecord(tier, timestamp, outcome))

        logger.info(
            "Tier dispatched",
            short_id=alert.short_id,
            alert_type=alert.type,
            tier=tier.channel,
            outcome=outcome.value,
        )
        return outcome

    async def _deliver(
        self,
        alert: Alert,
        tier: EscalationTier,
        timestamp: datetime,
    ) -> DispatchOutcome:
        sender = self._senders.get(tier.channel)
        if sender is None:
            logger.info("No sender registered for tier", tier=tier.channel)
            return DispatchOutcome.SKIPPED_NO_SENDER

        if tier == EscalationTier.VOICE:
            if (
                self._voice_capability is not None
                and not self._voice_capability.is_available()
            ):
                logger.info("Voice call skipped: voice not available")
                return DispatchOutcome.SKIPPED_NO_SENDER
            if self._dnd.is_blocked(alert.level, timestamp):
                logger.info("Voice call skipped: Do Not Disturb active")
                return DispatchOutcome.SKIPPED_DND
            text = format_voice_message(alert)
        elif tier == EscalationTier.WHATSAPP:
            text = format_alert_message(alert, ESCALATED_PREFIX)
        else:
            text = format_alert_message(alert)

        try:
            result = await sender(text)
        except Exception:
            logger.warning(
                "Sender failed",
                exc_info=True,
                tier=tier.channel,
                short_id=alert.short_id,
            )
            return DispatchOutcome.FAILED

        # Senders that report failure instead of raising
        if result is False:
            return DispatchOutcome.FAILED
        return DispatchOutcome.SENT
