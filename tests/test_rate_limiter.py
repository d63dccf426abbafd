"""Tests for alert creation rate limiting."""

from datetime import UTC, datetime, timedelta

from alert_escalation.schemas.engine_config import EngineConfig
from alert_escalation.services.rate_limiter import RateLimiter

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


def make_limiter(**overrides) -> RateLimiter:
    config = EngineConfig(**overrides)
    return RateLimiter(lambda: config)


class TestCooldown:
    """Per-type cooldown."""

    def test_first_alert_allowed(self):
        limiter = make_limiter()
        assert limiter.allow("CI_FAILURE_MAIN", NOW) is True

    def test_same_type_within_cooldown_rejected(self):
        limiter = make_limiter(alert_cooldown_ms=300_000)
        limiter.allow("CI_FAILURE_MAIN", NOW)

        assert limiter.allow("CI_FAILURE_MAIN", NOW + timedelta(minutes=4)) is False

    def test_same_type_after_cooldown_allowed(self):
        limiter = make_limiter(alert_cooldown_ms=300_000)
        limiter.allow("CI_FAILURE_MAIN", NOW)

        assert limiter.allow("CI_FAILURE_MAIN", NOW + timedelta(minutes=5)) is True

    def test_different_types_do_not_share_cooldown(self):
        limiter = make_limiter()
        limiter.allow("CI_FAILURE_MAIN", NOW)

        assert limiter.allow("DEPLOY_FAILURE", NOW) is True

    def test_rejected_attempt_does_not_restart_cooldown(self):
        limiter = make_limiter(alert_cooldown_ms=300_000)
        limiter.allow("SERVER_HIGH_CPU", NOW)
        limiter.allow("SERVER_HIGH_CPU", NOW + timedelta(minutes=4))

        assert limiter.allow("SERVER_HIGH_CPU", NOW + timedelta(minutes=5)) is True

    def test_zero_cooldown_allows_repeats(self):
        limiter = make_limiter(alert_cooldown_ms=0)
        limiter.allow("ERROR_SPIKE", NOW)

        assert limiter.allow("ERROR_SPIKE", NOW) is True


class TestHourlyWindow:
    """Rolling one-hour cap."""

    def test_cap_reached_rejects(self):
        limiter = make_limiter(max_alerts_per_hour=3)
        for i in range(3):
            assert limiter.allow(f"TYPE_{i}", NOW + timedelta(minutes=i)) is True

        assert limiter.allow("TYPE_X", NOW + timedelta(minutes=10)) is False

    def test_oldest_entry_ages_out(self):
        limiter = make_limiter(max_alerts_per_hour=2)
        limiter.allow("A", NOW)
        limiter.allow("B", NOW + timedelta(minutes=30))

        assert limiter.allow("C", NOW + timedelta(minutes=59)) is False
        assert limiter.allow("C", NOW + timedelta(minutes=60)) is True

    def test_rejections_are_not_recorded(self):
        limiter = make_limiter(max_alerts_per_hour=1)
        limiter.allow("A", NOW)
        limiter.allow("B", NOW + timedelta(minutes=1))

        assert limiter.recent_count(NOW + timedelta(minutes=2)) == 1

    def test_zero_cap_rejects_everything(self):
        limiter = make_limiter(max_alerts_per_hour=0)
        assert limiter.allow("A", NOW) is False

    def test_remaining(self):
        limiter = make_limiter(max_alerts_per_hour=10)
        limiter.allow("A", NOW)
        limiter.allow("B", NOW)

        assert limiter.remaining(NOW) == 8
        assert limiter.remaining(NOW + timedelta(hours=2)) == 10

    def test_live_config_changes_apply(self):
        config = {"value": EngineConfig(max_alerts_per_hour=1)}
        limiter = RateLimiter(lambda: config["value"])
        limiter.allow("A", NOW)
        assert limiter.allow("B", NOW) is False

        config["value"] = EngineConfig(max_alerts_per_hour=5)
        assert limiter.allow("B", NOW) is True
