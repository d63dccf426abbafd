"""Per-alert escalation state machine.

States: primary chat sent -> secondary chat sent -> voice sent (terminal).
Acknowledgment is reachable from any non-terminal state and is terminal.

Each pending transition is an APScheduler date job whose id is derived
from the alert id, so acknowledgment and clear-all can remove it before
it fires. All mutations of one alert (initial dispatch, timer transition,
acknowledgment, purge) run under that alert's ``asyncio.Lock``; whichever
operation takes the lock first wins. A timer re-checks acknowledgment
when it fires, not when it was armed.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

from alert_escalation.logging_config import alert_id_ctx, get_logger
from alert_escalation.models.alert import (
    FINAL_TIER,
    Alert,
    AlertLevel,
    EscalationTier,
)
from alert_escalation.schemas.engine_config import EngineConfig
from alert_escalation.services.alert_registry import AlertRegistry
from alert_escalation.services.channel_dispatcher import ChannelDispatcher

logger = get_logger(__name__)


def escalation_job_id(alert_id: str) -> str:
    return f"escalate:{alert_id}"


def purge_job_id(alert_id: str) -> str:
    return f"purge:{alert_id}"


class EscalationScheduler:
    """Drives alerts through their tiers and owns their timers."""

    def __init__(
        self,
        registry: AlertRegistry,
        dispatcher: ChannelDispatcher,
        config_provider: Callable[[], EngineConfig],
        job_scheduler: BaseScheduler,
        clock: Callable[[], datetime] | None = None,
    ):
        self._registry = registry
        self._dispatcher = dispatcher
        self._config = config_provider
        self._jobs = job_scheduler
        self._clock = clock or (lambda: datetime.now(UTC))
        self._locks: dict[str, asyncio.Lock] = {}
        # alert id -> job id of the pending transition / purge
        self._armed: dict[str, str] = {}
        self._purges: dict[str, str] = {}

    def _lock_for(self, alert_id: str) -> asyncio.Lock:
        lock = self._locks.get(alert_id)
        if lock is None:
            lock = self._locks[alert_id] = asyncio.Lock()
        return lock

    def is_armed(self, alert_id: str) -> bool:
        """Whether a tier transition is pending for the alert."""
        return alert_id in self._armed

    async def start(self, alert: Alert) -> None:
        """Send the initial tier for a new alert and arm the first timer.

        INFO alerts get the primary chat only. EMERGENCY alerts go straight
        to voice. WARNING and CRITICAL alerts start on the primary chat and
        escalate after ``tier1_delay_ms``.
        """
        token = alert_id_ctx.set(alert.id)
        try:
            async with self._lock_for(alert.id):
                if alert.level == AlertLevel.EMERGENCY:
                    alert.escalation_step = FINAL_TIER.value
                    await self._dispatcher.dispatch(alert, FINAL_TIER)
                    logger.info("Emergency alert sent straight to voice")
                    return

                await self._dispatcher.dispatch(alert, EscalationTier.TELEGRAM)

                if alert.level == AlertLevel.INFO:
                    return

                if self._registry.get_by_id(alert.id) is alert:
                    self._arm(alert, self._config().tier1_delay_ms)
        finally:
            alert_id_ctx.reset(token)

    async def escalate(self, alert_id: str) -> None:
        """Timer target: move an unacknowledged alert to its next tier."""
        token = alert_id_ctx.set(alert_id)
        try:
            async with self._lock_for(alert_id):
                self._armed.pop(alert_id, None)

                alert = self._registry.get_by_id(alert_id)
                if alert is None or alert.acknowledged:
                    logger.debug("Escalation timer fired for settled alert")
                    return
                if alert.escalation_step >= FINAL_TIER.value:
                    return

                alert.escalation_step += 1
                tier = EscalationTier(alert.escalation_step)
                await self._dispatcher.dispatch(alert, tier)

                if tier == FINAL_TIER:
                    logger.info("Alert reached final tier", short_id=alert.short_id)
                    return

                # Cleared while the send was in flight
                if self._registry.get_by_id(alert_id) is not alert:
                    return
                self._arm(alert, self._config().tier2_delay_ms)
        finally:
            alert_id_ctx.reset(token)

    def _arm(self, alert: Alert, delay_ms: int) -> None:
        run_date = self._clock() + timedelta(milliseconds=delay_ms)
        job_id = escalation_job_id(alert.id)
        next_tier = EscalationTier(alert.escalation_step + 1)

        self._jobs.add_job(
            self.escalate,
            trigger=DateTrigger(run_date=run_date),
            args=[alert.id],
            id=job_id,
            name=f"Escalate {alert.short_id} to {next_tier.channel}",
            replace_existing=True,
            misfire_grace_time=None,
        )
        self._armed[alert.id] = job_id

        logger.info(
            "Scheduled escalation",
            short_id=alert.short_id,
            next_tier=next_tier.channel,
            delay_minutes=round(delay_ms / 60000, 2),
        )

    def _remove_job(self, job_id: str) -> bool:
        try:
            self._jobs.remove_job(job_id)
        except JobLookupError:
            # Already fired
            return False
        return True

    def cancel(self, alert_id: str) -> bool:
        """Remove the alert's pending transition, if any."""
        job_id = self._armed.pop(alert_id, None)
        if job_id is None:
            return False
        return self._remove_job(job_id)

    async def acknowledge(self, alert_id: str) -> bool | None:
        """Flag an alert as acknowledged and cancel its pending transition.

        Waits for any in-flight transition of the same alert, so an
        acknowledgment never interleaves with a send.

        Returns:
            True if this call acknowledged the alert, False if it already
            was, None if the alert no longer exists.
        """
        async with self._lock_for(alert_id):
            alert = self._registry.get_by_id(alert_id)
            if alert is None:
                return None
            if alert.acknowledged:
                return False

            alert.acknowledged = True
            alert.acknowledged_at = self._clock()
            self.cancel(alert_id)
            return True

    def schedule_purge(self, alert_id: str, delay_ms: int) -> None:
        """Remove the alert from the registry after ``delay_ms``."""
        job_id = purge_job_id(alert_id)
        self._jobs.add_job(
            self.purge,
            trigger=DateTrigger(
                run_date=self._clock() + timedelta(milliseconds=delay_ms)
            ),
            args=[alert_id],
            id=job_id,
            name=f"Purge acknowledged alert {alert_id}",
            replace_existing=True,
            misfire_grace_time=None,
        )
        self._purges[alert_id] = job_id

    async def purge(self, alert_id: str) -> None:
        """Timer target: drop an acknowledged alert."""
        async with self._lock_for(alert_id):
            self._purges.pop(alert_id, None)
            removed = self._registry.delete(alert_id)
        self._locks.pop(alert_id, None)
        if removed:
            logger.debug("Purged acknowledged alert", alert_id=alert_id)

    def cancel_all(self) -> int:
        """Remove every pending transition and purge job.

        Returns:
            Number of escalation timers cancelled.
        """
        cancelled = 0
        for job_id in list(self._armed.values()):
            if self._remove_job(job_id):
                cancelled += 1
        for job_id in list(self._purges.values()):
            self._remove_job(job_id)

        self._armed.clear()
        self._purges.clear()
        self._locks.clear()
        return cancelled
