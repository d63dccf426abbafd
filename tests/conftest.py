"""Pytest configuration and shared fixtures.

Escalation timers are driven by ``FakeJobScheduler``, which exposes the
APScheduler ``add_job`` / ``remove_job`` / ``get_job`` surface the engine
uses and runs due jobs when the test advances a manual clock.
"""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from apscheduler.jobstores.base import ConflictingIdError, JobLookupError

from alert_escalation.schemas.engine_config import EngineConfig
from alert_escalation.services.alert_engine import AlertEngine

START = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeJobScheduler:
    """In-memory job store that fires date jobs in simulated time."""

    running = False

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.jobs: dict[str, SimpleNamespace] = {}

    def add_job(self, func, trigger=None, args=None, id=None, replace_existing=False, **kwargs):
        if id in self.jobs and not replace_existing:
            raise ConflictingIdError(id)
        job = SimpleNamespace(
            id=id,
            func=func,
            args=tuple(args or ()),
            run_date=trigger.run_date,
            name=kwargs.get("name"),
        )
        self.jobs[id] = job
        return job

    def remove_job(self, job_id, jobstore=None):
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        del self.jobs[job_id]

    def get_job(self, job_id, jobstore=None):
        return self.jobs.get(job_id)

    async def advance(self, **kwargs) -> None:
        """Move the clock forward, running every job that comes due in order."""
        target = self.clock.now + timedelta(**kwargs)
        while True:
            due = [job for job in self.jobs.values() if job.run_date <= target]
            if not due:
                break
            job = min(due, key=lambda j: j.run_date)
            del self.jobs[job.id]
            self.clock.now = max(self.clock.now, job.run_date)
            await job.func(*job.args)
        self.clock.now = target


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def jobs(clock) -> FakeJobScheduler:
    return FakeJobScheduler(clock)


@pytest.fixture
def senders() -> dict[str, AsyncMock]:
    return {
        "telegram": AsyncMock(return_value=True),
        "whatsapp": AsyncMock(return_value=True),
        "voice": AsyncMock(return_value=True),
    }


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig(
        tier1_delay_ms=900_000,
        tier2_delay_ms=1_800_000,
        dnd_start_hour=23,
        dnd_end_hour=7,
        dnd_timezone="UTC",
    )


@pytest.fixture
def engine(config, senders, jobs, clock) -> AlertEngine:
    return AlertEngine(config=config, senders=senders, job_scheduler=jobs, clock=clock)
