"""Tests for the in-memory alert registry."""

from datetime import UTC, datetime, timedelta

from alert_escalation.models.alert import (
    Alert,
    AlertLevel,
    DispatchOutcome,
    EscalationRecord,
    EscalationTier,
    generate_alert_id,
)
from alert_escalation.services.alert_registry import AlertRegistry

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


def make_alert(
    alert_id: str,
    age_minutes: float = 0,
    acknowledged: bool = False,
) -> Alert:
    return Alert(
        id=alert_id,
        type="CI_FAILURE_MAIN",
        category="ci",
        level=AlertLevel.CRITICAL,
        message="CI failed on main branch",
        details="build #42",
        created_at=NOW - timedelta(minutes=age_minutes),
        acknowledged=acknowledged,
    )


class TestAlertIds:
    """Id generation."""

    def test_short_id_is_last_six_chars(self):
        alert = make_alert("1767355200000-abc123xyz")
        assert alert.short_id == "123xyz"

    def test_generated_ids_are_unique(self):
        ids = {generate_alert_id() for _ in range(500)}
        assert len(ids) == 500

    def test_generated_id_format(self):
        millis, suffix = generate_alert_id().split("-")
        assert millis.isdigit()
        assert len(suffix) == 9
        assert suffix.isalnum() and suffix.lower() == suffix


class TestLookup:
    """Full, short and suffix lookups."""

    def test_get_by_id(self):
        registry = AlertRegistry()
        alert = make_alert("1000-aaaaaaaaa")
        assert registry.create(alert) == alert.id

        assert registry.get_by_id(alert.id) is alert
        assert registry.get_by_id("missing") is None

    def test_short_id_lookup(self):
        registry = AlertRegistry()
        alert = make_alert("1000-abcdefghi")
        registry.create(alert)

        assert registry.get_by_short_or_full_id("defghi") is alert

    def test_suffix_lookup(self):
        registry = AlertRegistry()
        alert = make_alert("1000-abcdefghi")
        registry.create(alert)

        assert registry.get_by_short_or_full_id("ghi") is alert

    def test_exact_match_wins_over_suffix(self):
        registry = AlertRegistry()
        suffix_match = make_alert("1000-xx-zzzzzz")
        exact = make_alert("zzzzzz")
        registry.create(suffix_match)
        registry.create(exact)

        assert registry.get_by_short_or_full_id("zzzzzz") is exact

    def test_empty_reference_matches_nothing(self):
        registry = AlertRegistry()
        registry.create(make_alert("1000-abcdefghi"))

        assert registry.get_by_short_or_full_id("") is None

    def test_unknown_reference(self):
        registry = AlertRegistry()
        registry.create(make_alert("1000-abcdefghi"))

        assert registry.get_by_short_or_full_id("nope00") is None


class TestListPending:
    """Pending listing."""

    def test_excludes_acknowledged_and_sorts_newest_first(self):
        registry = AlertRegistry()
        registry.create(make_alert("1-old", age_minutes=30))
        registry.create(make_alert("2-new", age_minutes=1))
        registry.create(make_alert("3-ack", acknowledged=True))

        pending = registry.list_pending()

        assert [a.id for a in pending] == ["2-new", "1-old"]

    def test_returns_copies(self):
        registry = AlertRegistry()
        alert = make_alert("1-a")
        registry.create(alert)

        copy = registry.list_pending()[0]
        copy.escalation_history.append(
            EscalationRecord(EscalationTier.TELEGRAM, NOW, DispatchOutcome.SENT)
        )
        copy.metadata["x"] = 1

        assert alert.escalation_history == []
        assert alert.metadata == {}


class TestRemoval:
    """Delete and clear."""

    def test_delete(self):
        registry = AlertRegistry()
        registry.create(make_alert("1-a"))

        assert registry.delete("1-a") is True
        assert registry.delete("1-a") is False
        assert len(registry) == 0

    def test_clear_returns_count(self):
        registry = AlertRegistry()
        registry.create(make_alert("1-a"))
        registry.create(make_alert("2-b"))

        assert registry.clear() == 2
        assert len(registry) == 0
