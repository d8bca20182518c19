"""Locate Codex CLI rollout sessions recorded for a working directory.

Codex writes one append-only JSONL rollout per session under a date
partitioned tree::

    <sessions root>/<YYYY>/<MM>/<DD>/rollout-<timestamp>-<id>.jsonl

The first line of every rollout is a ``session_meta`` record; later lines are
``response_item`` (and other) records. This module walks that tree newest
first, parses rollouts lazily and keeps the ones whose recorded ``cwd``
matches a target directory.
"""

import json
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import click

SESSIONS_DIR_ENV = "CODEX_SESSIONS_DIR"

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")
_RFC3339_RE = re.compile(r"^\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$")


class SessionLogError(click.ClickException):
    """A session log (or the directory holding it) could not be read."""


@dataclass(frozen=True)
class Session:
    """One Codex conversation, built from exactly one rollout file."""

    id: str
    working_directory: str
    last_timestamp: datetime | None = None
    last_user_message: str | None = None
    path: Path | None = None


def resolve_sessions_root(environ=None) -> Path | None:
    """Return the partition root, or None when no location can be determined."""
    if environ is None:
        environ = os.environ
    override = environ.get(SESSIONS_DIR_ENV)
    if override:
        return Path(override).expanduser()

    codex_home = environ.get("CODEX_HOME")
    if codex_home:
        return Path(codex_home).expanduser() / "sessions"

    try:
        home = Path.home()
    except RuntimeError:
        return None
    return home / ".codex" / "sessions"


def _parse_iso8601(value):
    """Parse an RFC 3339 timestamp into an aware UTC datetime, or None."""
    if not value or not isinstance(value, str):
        return None
    value = value.strip()
    if not _RFC3339_RE.match(value):
        return None
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    # fromisoformat() tops out at microseconds; Codex may write nanoseconds.
    value = _FRACTION_RE.sub(r"\1", value)
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    if dt.tzinfo is None:
        return None
    return dt.astimezone(timezone.utc)


def _reject_constant(name):
    raise ValueError(f"Invalid JSON constant: {name}")


def _loads(data):
    # NaN and Infinity are not JSON.
    return json.loads(data, parse_constant=_reject_constant)


def _sorted_entries(path: Path, *, want_dirs: bool, descending: bool) -> list[Path]:
    try:
        it = os.scandir(path)
    except FileNotFoundError:
        return []
    except OSError as e:
        raise SessionLogError(f"Failed to read Codex session directory: {path}") from e

    entries = []
    try:
        with it:
            for entry in it:
                if want_dirs:
                    keep = entry.is_dir(follow_symlinks=False)
                else:
                    keep = entry.is_file(follow_symlinks=False)
                if keep:
                    entries.append(Path(entry.path))
    except OSError as e:
        raise SessionLogError(f"Failed to read Codex session directory: {path}") from e

    entries.sort(key=lambda p: (p.name, str(p)), reverse=descending)
    return entries


def iter_session_files(root: Path | None, *, descending: bool = True):
    """Yield rollout files under ``root`` (year -> month -> day -> file).

    Each level is sorted by name, reversed when ``descending``. Missing
    directories contribute nothing; unreadable ones raise SessionLogError.
    Nothing is opened, so consumers can stop early.
    """
    if root is None:
        return
    root = Path(root)
    for year in _sorted_entries(root, want_dirs=True, descending=descending):
        for month in _sorted_entries(year, want_dirs=True, descending=descending):
            for day in _sorted_entries(month, want_dirs=True, descending=descending):
                yield from _sorted_entries(day, want_dirs=False, descending=descending)


def extract_user_message(payload: dict):
    """Return the text of a message payload, or None when it carries none.

    List content joins each item's ``text`` (falling back to a nested
    ``content`` string) with newlines; string content is returned as-is.
    """
    content = payload.get("content")
    if isinstance(content, list):
        segments = []
        for item in content:
            if not isinstance(item, dict):
                continue
            text = item.get("text")
            if isinstance(text, str):
                segments.append(text)
                continue
            inner = item.get("content")
            if isinstance(inner, str):
                segments.append(inner)
        if not segments:
            return None
        return "\n".join(segments)
    if isinstance(content, str):
        return content
    return None


def _is_user_message(obj) -> bool:
    if not isinstance(obj, dict) or obj.get("type") != "response_item":
        return False
    payload = obj.get("payload")
    if not isinstance(payload, dict):
        return False
    return payload.get("role") == "user" and payload.get("type") == "message"


def parse_session_file(filepath) -> Session | None:
    """Parse a rollout into a Session.

    Returns None for empty files and for files whose first record is not
    ``session_meta``. A first line that is not JSON, or metadata without an
    ``id``, raises SessionLogError. Later malformed lines are skipped.
    """
    filepath = Path(filepath)
    try:
        f = open(filepath, "rb")
    except OSError as e:
        raise SessionLogError(f"Failed to open Codex session file: {filepath}") from e

    with f:
        first_line = f.readline()
        if not first_line:
            return None

        try:
            meta = _loads(first_line)
        except ValueError as e:
            raise SessionLogError(f"Failed to parse session meta in {filepath}") from e

        if not isinstance(meta, dict) or meta.get("type") != "session_meta":
            return None

        payload = meta.get("payload")
        if not isinstance(payload, dict):
            raise SessionLogError(f"Session payload is missing in {filepath}")

        session_id = payload.get("id")
        if not isinstance(session_id, str):
            raise SessionLogError(f"Session id missing in {filepath}")

        cwd = payload.get("cwd")
        if not isinstance(cwd, str):
            cwd = ""

        last_timestamp = _parse_iso8601(payload.get("timestamp"))
        last_user_message = None

        for line in f:
            try:
                obj = _loads(line)
            except ValueError:
                continue

            if not _is_user_message(obj):
                continue

            ts = _parse_iso8601(obj.get("timestamp"))
            if ts is not None and (last_timestamp is None or ts > last_timestamp):
                last_timestamp = ts

            message = extract_user_message(obj["payload"])
            if message is not None and message.strip():
                last_user_message = message

    return Session(
        id=session_id,
        working_directory=cwd,
        last_timestamp=last_timestamp,
        last_user_message=last_user_message,
        path=filepath,
    )


def normalized_path(path) -> Path:
    """Canonicalize ``path``, falling back to it unchanged when that fails."""
    path = Path(path)
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError):
        return path


def _canonicalize(value: str) -> Path | None:
    if not value:
        return None
    try:
        return Path(value).resolve(strict=True)
    except (OSError, RuntimeError):
        return None


def matches_worktree(session_cwd: str, target_canonical: Path, fallback) -> bool:
    """Return True if a session recorded in ``session_cwd`` belongs to the target.

    Canonical paths are compared when ``session_cwd`` still resolves on disk;
    otherwise the recorded string must equal the caller's original path.
    """
    canonical = _canonicalize(session_cwd)
    if canonical is not None and canonical == target_canonical:
        return True
    return session_cwd == os.fspath(fallback)


def _iter_matching_sessions(target_directory, sessions_root):
    target_canonical = normalized_path(target_directory)
    for path in iter_session_files(sessions_root, descending=True):
        session = parse_session_file(path)
        if session is None:
            continue
        if matches_worktree(session.working_directory, target_canonical, target_directory):
            yield session


def find_latest_session(target_directory, *, sessions_root: Path | None) -> Session | None:
    """Return the most recent session recorded for ``target_directory``.

    Stops parsing at the first match.
    """
    for session in _iter_matching_sessions(target_directory, sessions_root):
        return session
    return None


def recent_sessions(
    target_directory, limit: int, *, sessions_root: Path | None
) -> tuple[list[Session], int]:
    """Return up to ``limit`` recent sessions and the total number matching.

    ``limit=0`` collects every match. The total always counts all matches.
    """
    if limit < 0:
        raise ValueError("limit must be >= 0")

    sessions: list[Session] = []
    total = 0
    for session in _iter_matching_sessions(target_directory, sessions_root):
        total += 1
        if limit == 0 or len(sessions) < limit:
            sessions.append(session)
    return sessions, total
