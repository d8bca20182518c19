"""Display helpers for Session records."""

from datetime import datetime, timezone

from codex_sessions.core import Session


def format_time_ago(timestamp: datetime | None, now: datetime | None = None) -> str:
    """Render ``timestamp`` as ``5m ago`` / ``3h ago`` / ``2d ago``."""
    if timestamp is None:
        return "unknown"
    if now is None:
        now = datetime.now(timezone.utc)
    seconds = (now - timestamp).total_seconds()
    minutes = int(seconds / 60)
    if minutes < 60:
        return f"{minutes}m ago"
    hours = int(seconds / 3600)
    if hours < 24:
        return f"{hours}h ago"
    return f"{int(seconds / 86400)}d ago"


def format_message_preview(message: str, limit: int) -> str:
    if len(message) <= limit:
        return message
    return message[: max(limit - 3, 0)] + "..."


def session_to_dict(session: Session, now: datetime | None = None) -> dict:
    return {
        "id": session.id,
        "cwd": session.working_directory,
        "last_user_message": session.last_user_message,
        "last_timestamp": session.last_timestamp.isoformat() if session.last_timestamp else None,
        "time_ago": format_time_ago(session.last_timestamp, now=now),
    }
