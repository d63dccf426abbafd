"""In-memory store of alerts in flight."""

from alert_escalation.models.alert import Alert


class AlertRegistry:
    """Owns the alert records, keyed by full id.

    Only stores alert state. Timers belong to the escalation scheduler.
    Reads that leave the engine (``list_pending``) hand out copies.
    """

    def __init__(self) -> None:
        self._alerts: dict[str, Alert] = {}

    def __len__(self) -> int:
        return len(self._alerts)

    def create(self, alert: Alert) -> str:
        self._alerts[alert.id] = alert
        return alert.id

    def get_by_id(self, alert_id: str) -> Alert | None:
        return self._alerts.get(alert_id)

    def get_by_short_or_full_id(self, id_or_short_id: str) -> Alert | None:
        """Find an alert by full id, short id, or id suffix.

        An exact full-id match wins; otherwise the first alert whose short
        id equals the input or whose id ends with it is returned.
        """
        if not id_or_short_id:
            return None

        alert = self._alerts.get(id_or_short_id)
        if alert is not None:
            return alert

        for candidate in list(self._alerts.values()):
            if candidate.short_id == id_or_short_id or candidate.id.endswith(
                id_or_short_id
            ):
                return candidate
        return None

    def list_pending(self) -> list[Alert]:
        """Unacknowledged alerts, newest first, as copies."""
        pending = [
            alert.snapshot()
            for alert in list(self._alerts.values())
            if not alert.acknowledged
        ]
        return sorted(pending, key=lambda a: a.created_at, reverse=True)

    def delete(self, alert_id: str) -> bool:
        return self._alerts.pop(alert_id, None) is not None

    def clear(self) -> int:
        """Remove every alert and return how many there were."""
        count = len(self._alerts)
        self._alerts.clear()
        return count
