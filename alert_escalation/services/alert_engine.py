"""Alert escalation engine facade.

Composes rate limiting, the alert registry, tier dispatch and the
escalation scheduler behind the operations callers use: create,
acknowledge, query and configure.

The engine is constructed once by the application's composition root
and passed to whatever raises alerts; there is no module-level instance.
"""

import asyncio
from collections.abc import AsyncGenerator, Callable, Mapping
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.base import BaseScheduler

from alert_escalation.config import settings
from alert_escalation.logging_config import alert_id_ctx, get_logger
from alert_escalation.models.alert import Alert, AlertLevel, generate_alert_id
from alert_escalation.models.triggers import TRIGGERS, Trigger, get_trigger
from alert_escalation.models.triggers import is_valid_type as _is_valid_type
from alert_escalation.schemas.engine_config import EngineConfig, EngineConfigUpdate
from alert_escalation.schemas.stats import AlertStats
from alert_escalation.services.alert_registry import AlertRegistry
from alert_escalation.services.channel_dispatcher import (
    ChannelDispatcher,
    Sender,
    VoiceCapability,
)
from alert_escalation.services.dnd_policy import DNDPolicy
from alert_escalation.services.escalation_scheduler import EscalationScheduler
from alert_escalation.services.rate_limiter import RateLimiter

logger = get_logger(__name__)


def _coerce_level(level: AlertLevel | str) -> AlertLevel:
    if isinstance(level, AlertLevel):
        return level
    return AlertLevel(str(level).lower())


class AlertEngine:
    """Creates alerts and escalates them until someone acknowledges."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        senders: Mapping[str, Sender] | None = None,
        voice_capability: VoiceCapability | None = None,
        job_scheduler: BaseScheduler | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._config = config or EngineConfig.from_settings(settings)
        self._clock = clock or (lambda: datetime.now(UTC))
        self._owns_job_scheduler = job_scheduler is None
        self._job_scheduler = job_scheduler or AsyncIOScheduler(timezone=UTC)

        self._registry = AlertRegistry()
        self._rate_limiter = RateLimiter(self.get_config)
        self._dnd_policy = DNDPolicy(self.get_config)
        self._dispatcher = ChannelDispatcher(
            self._dnd_policy,
            senders=senders,
            voice_capability=voice_capability,
            clock=self._clock,
        )
        self._scheduler = EscalationScheduler(
            self._registry,
            self._dispatcher,
            self.get_config,
            self._job_scheduler,
            clock=self._clock,
        )

        logger.info(
            "Alert engine initialized",
            tier1_delay_minutes=self._config.tier1_delay_ms / 60000,
            tier2_delay_minutes=self._config.tier2_delay_ms / 60000,
            dnd_hours=f"{self._config.dnd_start_hour}:00 - {self._config.dnd_end_hour}:00",
            enabled=self._config.enabled,
        )

    # ── Lifecycle ──

    def register_senders(
        self,
        senders: Mapping[str, Sender],
        voice_capability: VoiceCapability | None = None,
    ) -> None:
        """Inject channel senders after construction."""
        self._dispatcher.register_senders(senders, voice_capability)

    def start(self) -> None:
        """Start the owned job scheduler. Requires a running event loop."""
        if self._owns_job_scheduler and not self._job_scheduler.running:
            self._job_scheduler.start()
            logger.info("Escalation job scheduler started")

    async def shutdown(self) -> None:
        """Cancel all timers and stop the owned job scheduler.

        AsyncIOScheduler applies its shutdown on a later loop iteration;
        this waits for it, so ``start`` may be called again right after.
        """
        self._scheduler.cancel_all()
        if self._owns_job_scheduler and self._job_scheduler.running:
            self._job_scheduler.shutdown(wait=False)
            while self._job_scheduler.running:
                await asyncio.sleep(0)
            logger.info("Escalation job scheduler stopped")

    # ── Alerts ──

    async def create_alert(
        self,
        alert_type: str,
        details: str,
        *,
        level: AlertLevel | str | None = None,
        message: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> str | None:
        """Create an alert and start its escalation.

        Args:
            alert_type: Trigger type (e.g. ``CI_FAILURE_MAIN``); unknown
                types escalate as generic WARNING alerts.
            details: Free-text details shown in every notification.
            level: Override the trigger's default level.
            message: Override the trigger's default message.
            metadata: Opaque data stored with the alert.

        Returns:
            The alert id, or None if the engine is disabled or the
            request was rate limited.

        Raises:
            ValueError: If ``level`` is not a known alert level.
        """
        if not self._config.enabled:
            logger.info("Alert engine disabled, skipping alert", alert_type=alert_type)
            return None

        override_level = _coerce_level(level) if level is not None else None

        now = self._clock()
        if not self._rate_limiter.allow(alert_type, now):
            return None

        trigger = get_trigger(alert_type)
        alert_id = generate_alert_id()
        while self._registry.get_by_id(alert_id) is not None:
            alert_id = generate_alert_id()

        alert = Alert(
            id=alert_id,
            type=alert_type,
            category=trigger.category,
            level=override_level or trigger.level,
            message=message or trigger.message,
            details=details,
            created_at=now,
            metadata=dict(metadata or {}),
        )
        self._registry.create(alert)

        token = alert_id_ctx.set(alert.id)
        try:
            logger.info(
                "Created alert",
                alert_type=alert_type,
                level=alert.level.value,
                short_id=alert.short_id,
            )
        finally:
            alert_id_ctx.reset(token)

        await self._scheduler.start(alert)
        return alert.id

    async def acknowledge(self, id_or_short_id: str) -> bool:
        """Acknowledge an alert, stopping its escalation.

        The alert stays queryable for the retention window, then is
        purged. Acknowledging an already-acknowledged alert is a no-op
        that still returns True.

        Args:
            id_or_short_id: Full alert id or its last 6 characters.

        Returns:
            True if the alert exists, False otherwise.
        """
        alert = self._registry.get_by_short_or_full_id(id_or_short_id)
        if alert is None:
            logger.info("Alert not found for acknowledgement", ref=id_or_short_id)
            return False

        result = await self._scheduler.acknowledge(alert.id)
        if result is None:
            return False
        if result:
            self._scheduler.schedule_purge(alert.id, self._config.ack_retention_ms)
            logger.info(
                "Alert acknowledged",
                short_id=alert.short_id,
                alert_type=alert.type,
                escalation_step=alert.escalation_step,
            )
        else:
            logger.debug("Alert already acknowledged", short_id=alert.short_id)
        return True

    def get_pending_alerts(self) -> list[Alert]:
        """Unacknowledged alerts, newest first."""
        return self._registry.list_pending()

    def get_alert(self, id_or_short_id: str) -> Alert | None:
        """Look up an alert by full or short id; returns a copy."""
        alert = self._registry.get_by_short_or_full_id(id_or_short_id)
        return alert.snapshot() if alert is not None else None

    def get_stats(self) -> AlertStats:
        pending = self.get_pending_alerts()
        by_level = {level: 0 for level in AlertLevel}
        by_category: dict[str, int] = {}
        for alert in pending:
            by_level[alert.level] += 1
            by_category[alert.category] = by_category.get(alert.category, 0) + 1

        now = self._clock()
        return AlertStats(
            pending=len(pending),
            by_level=by_level,
            by_category=by_category,
            recent_alerts=self._rate_limiter.recent_count(now),
            rate_limit_remaining=self._rate_limiter.remaining(now),
        )

    def clear_all(self) -> int:
        """Drop every alert and cancel every timer.

        Rate-limit history is kept, so clearing does not reopen the
        hourly budget or any cooldown.

        Returns:
            Number of alerts removed.
        """
        self._scheduler.cancel_all()
        count = self._registry.clear()
        logger.info("Cleared all alerts", count=count)
        return count

    # ── Configuration ──

    def get_config(self) -> EngineConfig:
        return self._config

    def update_config(
        self, updates: EngineConfigUpdate | Mapping[str, Any]
    ) -> EngineConfig:
        """Merge a partial update into the running config.

        Raises:
            pydantic.ValidationError: If a value is malformed or a key is
                unknown. The running config is left unchanged.
        """
        if not isinstance(updates, EngineConfigUpdate):
            updates = EngineConfigUpdate.model_validate(dict(updates))

        self._config = updates.apply_to(self._config)
        logger.info(
            "Config updated",
            **updates.model_dump(exclude_unset=True),
        )
        return self._config

    # ── Trigger catalog ──

    @staticmethod
    def is_valid_type(alert_type: str) -> bool:
        return _is_valid_type(alert_type)

    @staticmethod
    def get_triggers() -> dict[str, Trigger]:
        return dict(TRIGGERS)

    @staticmethod
    def get_levels() -> dict[str, str]:
        return {level.name: level.value for level in AlertLevel}


@asynccontextmanager
async def engine_lifespan(engine: AlertEngine) -> AsyncGenerator[AlertEngine, None]:
    """Async context manager for the engine's timer lifecycle."""
    engine.start()
    try:
        yield engine
    finally:
        await engine.shutdown()
