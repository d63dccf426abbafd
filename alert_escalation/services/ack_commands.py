"""Chat reply handlers for alert acknowledgment.

Alert messages ask the recipient to reply ``ack <short_id>``. The chat
router hands every incoming text here first; a None return means the
text is not an alert command and should be routed elsewhere.

Supported replies:
  ack <id>   – Acknowledge a specific alert (full or short id)
  ack        – Acknowledge the most recent pending alert
  alerts     – List pending alerts
"""

from alert_escalation.logging_config import get_logger
from alert_escalation.services.alert_engine import AlertEngine
from alert_escalation.services.channel_dispatcher import LEVEL_EMOJI

logger = get_logger(__name__)

ACK_COMMANDS = frozenset({"ack", "/ack", "acknowledge", "/acknowledge"})
LIST_COMMANDS = frozenset({"alerts", "/alerts"})

MAX_LISTED = 10


async def _handle_acknowledge(engine: AlertEngine, args: str) -> str:
    """Acknowledge the given alert, or the newest pending one."""
    if args:
        if await engine.acknowledge(args):
            alert = engine.get_alert(args)
            label = alert.message if alert is not None else args
            return f"\u2705 Alert acknowledged: {label}"
        return f"\u274c Alert not found: {args}"

    pending = engine.get_pending_alerts()
    if not pending:
        return "\u2705 No pending alerts to acknowledge."

    newest = pending[0]
    await engine.acknowledge(newest.id)
    return f"\u2705 Alert acknowledged: {newest.message} ({newest.short_id})"


def _handle_list(engine: AlertEngine) -> str:
    pending = engine.get_pending_alerts()
    if not pending:
        return "\u2705 No pending alerts."

    lines = [f"\U0001f6a8 {len(pending)} pending alert(s):"]
    for alert in pending[:MAX_LISTED]:
        emoji = LEVEL_EMOJI.get(alert.level, "")
        lines.append(f"{emoji} {alert.short_id} \u2013 {alert.message}")
    if len(pending) > MAX_LISTED:
        lines.append(f"\u2026and {len(pending) - MAX_LISTED} more")
    lines.append("")
    lines.append('Reply "ack <id>" to acknowledge.')
    return "\n".join(lines)


async def handle_reply(engine: AlertEngine, text: str) -> str | None:
    """Route a chat reply to the matching alert command.

    Args:
        engine: The alert engine.
        text: Raw incoming message text.

    Returns:
        Response text, or None if the message is not an alert command.
    """
    parts = text.strip().split(maxsplit=1)
    if not parts:
        return None

    command = parts[0].lower()
    args = parts[1].strip() if len(parts) > 1 else ""

    if command in ACK_COMMANDS:
        logger.debug("Handling acknowledge reply", ref=args or "latest")
        return await _handle_acknowledge(engine, args)
    if command in LIST_COMMANDS and not args:
        return _handle_list(engine)
    return None
