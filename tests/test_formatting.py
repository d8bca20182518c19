"""Tests for display helpers."""

from datetime import datetime, timedelta, timezone

from codex_sessions.core import Session
from codex_sessions.formatting import format_message_preview, format_time_ago, session_to_dict

NOW = datetime(2024, 5, 10, 12, 0, 0, tzinfo=timezone.utc)


def test_format_time_ago_buckets():
    assert format_time_ago(None, now=NOW) == "unknown"
    assert format_time_ago(NOW - timedelta(seconds=59), now=NOW) == "0m ago"
    assert format_time_ago(NOW - timedelta(minutes=59, seconds=59), now=NOW) == "59m ago"
    assert format_time_ago(NOW - timedelta(minutes=60), now=NOW) == "1h ago"
    assert format_time_ago(NOW - timedelta(hours=23, minutes=59), now=NOW) == "23h ago"
    assert format_time_ago(NOW - timedelta(days=3, hours=5), now=NOW) == "3d ago"


def test_format_message_preview():
    assert format_message_preview("short", 10) == "short"
    assert format_message_preview("exactly10!", 10) == "exactly10!"
    assert format_message_preview("this is too long", 10) == "this is..."


def test_session_to_dict():
    session = Session(
        id="s1",
        working_directory="/repo",
        last_timestamp=NOW - timedelta(hours=2),
        last_user_message="hi",
    )

    assert session_to_dict(session, now=NOW) == {
        "id": "s1",
        "cwd": "/repo",
        "last_user_message": "hi",
        "last_timestamp": "2024-05-10T10:00:00+00:00",
        "time_ago": "2h ago",
    }
    assert session_to_dict(Session(id="s2", working_directory=""), now=NOW)["last_timestamp"] is None
