"""Alert creation rate limiting.

Two rules, both evaluated against the live engine config:
  - at most ``max_alerts_per_hour`` alerts in a rolling one-hour window
  - at most one alert per type every ``alert_cooldown_ms``
"""

from collections import deque
from collections.abc import Callable
from datetime import datetime, timedelta

from alert_escalation.logging_config import get_logger
from alert_escalation.schemas.engine_config import EngineConfig

logger = get_logger(__name__)

WINDOW = timedelta(hours=1)


class RateLimiter:
    """Decides whether a new alert of a given type may be created."""

    def __init__(self, config_provider: Callable[[], EngineConfig]):
        self._config = config_provider
        self._window: deque[tuple[str, datetime]] = deque()
        self._last_by_type: dict[str, datetime] = {}

    def _prune(self, now: datetime) -> None:
        cutoff = now - WINDOW
        while self._window and self._window[0][1] <= cutoff:
            self._window.popleft()

    def allow(self, alert_type: str, now: datetime) -> bool:
        """Check both rules and record the attempt if it is accepted.

        Args:
            alert_type: Trigger type of the alert being created.
            now: Current time.

        Returns:
            True if the alert may be created.
        """
        config = self._config()
        self._prune(now)

        if len(self._window) >= config.max_alerts_per_hour:
            logger.info(
                "Rate limited: max alerts per hour reached",
                alert_type=alert_type,
                max_alerts_per_hour=config.max_alerts_per_hour,
            )
            return False

        last = self._last_by_type.get(alert_type)
        cooldown = timedelta(milliseconds=config.alert_cooldown_ms)
        if last is not None and now - last < cooldown:
            logger.info(
                "Rate limited: alert type in cooldown",
                alert_type=alert_type,
                cooldown_remaining_s=round((cooldown - (now - last)).total_seconds()),
            )
            return False

        self._window.append((alert_type, now))
        self._last_by_type[alert_type] = now
        return True

    def recent_count(self, now: datetime) -> int:
        """Number of alerts accepted in the last hour."""
        self._prune(now)
        return len(self._window)

    def remaining(self, now: datetime) -> int:
        """Alerts that may still be created before the hourly cap."""
        return max(0, self._config().max_alerts_per_hour - self.recent_count(now))
