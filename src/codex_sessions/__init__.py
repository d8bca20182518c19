"""Find the Codex CLI sessions recorded for a working directory."""

from codex_sessions.core import (
    Session,
    SessionLogError,
    extract_user_message,
    find_latest_session,
    iter_session_files,
    matches_worktree,
    parse_session_file,
    recent_sessions,
    resolve_sessions_root,
)

__all__ = [
    "Session",
    "SessionLogError",
    "extract_user_message",
    "find_latest_session",
    "iter_session_files",
    "matches_worktree",
    "parse_session_file",
    "recent_sessions",
    "resolve_sessions_root",
]
