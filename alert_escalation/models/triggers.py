"""Static trigger catalog.

Maps an alert type to its default level, message and category.
"""

from dataclasses import dataclass

from alert_escalation.models.alert import AlertLevel


@dataclass(frozen=True)
class Trigger:
    """Template for alerts of one type."""

    level: AlertLevel
    message: str
    category: str


TRIGGERS: dict[str, Trigger] = {
    # CI/CD
    "CI_FAILURE_MAIN": Trigger(AlertLevel.CRITICAL, "CI failed on main branch", "ci"),
    "CI_FAILURE_OTHER": Trigger(
        AlertLevel.WARNING, "CI failed on feature branch", "ci"
    ),
    "DEPLOY_FAILURE": Trigger(AlertLevel.CRITICAL, "Deployment failed", "deploy"),
    # Server health
    "SERVER_DOWN": Trigger(AlertLevel.EMERGENCY, "Server unresponsive", "server"),
    "SERVER_HIGH_CPU": Trigger(AlertLevel.WARNING, "Server CPU usage high", "server"),
    "SERVER_HIGH_MEMORY": Trigger(
        AlertLevel.WARNING, "Server memory usage high", "server"
    ),
    "SERVER_DISK_FULL": Trigger(
        AlertLevel.CRITICAL, "Server disk nearly full", "server"
    ),
    # Deadlines
    "DEADLINE_7D": Trigger(AlertLevel.INFO, "Deadline in 7 days", "deadline"),
    "DEADLINE_24H": Trigger(AlertLevel.CRITICAL, "Deadline in 24 hours", "deadline"),
    "DEADLINE_1H": Trigger(AlertLevel.EMERGENCY, "Deadline in 1 hour", "deadline"),
    "DEADLINE_MISSED": Trigger(AlertLevel.EMERGENCY, "Deadline missed!", "deadline"),
    # Security
    "SECURITY_ALERT": Trigger(
        AlertLevel.EMERGENCY, "Security alert detected", "security"
    ),
    "UNAUTHORIZED_ACCESS": Trigger(
        AlertLevel.CRITICAL, "Unauthorized access attempt", "security"
    ),
    # Financial
    "PAYMENT_FAILED": Trigger(
        AlertLevel.CRITICAL, "Payment processing failed", "financial"
    ),
    "PAYMENT_RECEIVED": Trigger(AlertLevel.INFO, "Payment received", "financial"),
    # Monitoring
    "ANOMALY_DETECTED": Trigger(
        AlertLevel.WARNING, "Unusual activity detected", "monitoring"
    ),
    "ERROR_SPIKE": Trigger(AlertLevel.CRITICAL, "Error rate spike detected", "monitoring"),
    # GitHub
    "PR_NEEDS_REVIEW": Trigger(AlertLevel.INFO, "Pull request needs review", "github"),
    "PR_MERGE_CONFLICT": Trigger(
        AlertLevel.WARNING, "Pull request has merge conflicts", "github"
    ),
}

CUSTOM_CATEGORY = "custom"


def get_trigger(alert_type: str) -> Trigger:
    """Look up a trigger, falling back to a generic WARNING template."""
    trigger = TRIGGERS.get(alert_type)
    if trigger is None:
        return Trigger(AlertLevel.WARNING, alert_type, CUSTOM_CATEGORY)
    return trigger


def is_valid_type(alert_type: str) -> bool:
    """Check whether a type is in the catalog."""
    return alert_type in TRIGGERS
