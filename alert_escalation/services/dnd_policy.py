"""Do Not Disturb policy for the voice tier."""

from collections.abc import Callable
from datetime import datetime
from zoneinfo import ZoneInfo

from alert_escalation.models.alert import AlertLevel
from alert_escalation.schemas.engine_config import EngineConfig


def in_quiet_hours(hour: int, start_hour: int, end_hour: int) -> bool:
    """Check whether an hour falls inside ``[start_hour, end_hour)``.

    A window whose start is after its end wraps midnight (23 -> 7).
    Equal bounds describe an empty window.
    """
    if start_hour > end_hour:
        return hour >= start_hour or hour < end_hour
    return start_hour <= hour < end_hour


class DNDPolicy:
    """Decides whether a voice call may be placed right now."""

    def __init__(self, config_provider: Callable[[], EngineConfig]):
        self._config = config_provider

    def _local_hour(self, now: datetime, timezone: str | None) -> int:
        # Naive datetimes are taken to already be local wall-clock time
        if now.tzinfo is None:
            return now.hour
        if timezone:
            return now.astimezone(ZoneInfo(timezone)).hour
        return now.astimezone().hour

    def is_blocked(self, level: AlertLevel, now: datetime) -> bool:
        """Return True if quiet hours suppress a voice call for this level."""
        config = self._config()

        if level == AlertLevel.EMERGENCY:
            return False
        if level == AlertLevel.CRITICAL and config.bypass_dnd_for_critical:
            return False

        hour = self._local_hour(now, config.dnd_timezone)
        return in_quiet_hours(hour, config.dnd_start_hour, config.dnd_end_hour)
