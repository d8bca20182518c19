"""Settings for codex-sessions, resolved once at startup."""

import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path

from codex_sessions.core import SESSIONS_DIR_ENV, resolve_sessions_root

CONFIG_ENV = "CODEX_SESSIONS_CONFIG"
CODEX_CMD_ENV = "CODEX_SESSIONS_CODEX_CMD"
NON_INTERACTIVE_ENV = "CODEX_SESSIONS_NON_INTERACTIVE"

DEFAULT_PREVIEW_CHARS = 60
DEFAULT_LIMIT = 3
DEFAULT_CODEX_CMD = "codex"


@dataclass(frozen=True)
class Settings:
    sessions_root: Path | None
    config_path: Path | None = None
    preview_chars: int = DEFAULT_PREVIEW_CHARS
    limit: int = DEFAULT_LIMIT
    codex_cmd: str = DEFAULT_CODEX_CMD
    non_interactive: bool = False


def _env_truthy(environ, name: str) -> bool:
    val = environ.get(name)
    if val is None:
        return False
    return val.strip().lower() in ("1", "true", "yes", "y", "on")


def _global_config_path(environ) -> Path | None:
    override = environ.get(CONFIG_ENV)
    if override:
        return Path(override).expanduser()

    try:
        home = Path.home()
    except RuntimeError:
        home = None

    if sys.platform == "darwin" and home is not None:
        return home / "Library" / "Application Support" / "codex-sessions" / "config.toml"
    if os.name == "nt":
        base = environ.get("APPDATA")
        if base:
            return Path(base) / "codex-sessions" / "config.toml"
        if home is not None:
            return home / "AppData" / "Roaming" / "codex-sessions" / "config.toml"
        return None

    xdg = environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "codex-sessions" / "config.toml"
    if home is None:
        return None
    return home / ".config" / "codex-sessions" / "config.toml"


def _read_toml_file(path: Path | None) -> dict:
    if path is None:
        return {}
    try:
        raw = path.read_bytes()
    except OSError:
        return {}
    try:
        obj = tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError):
        return {}
    return obj if isinstance(obj, dict) else {}


def _config_get(cfg: dict, dotted_key: str, default=None):
    cur = cfg
    for part in dotted_key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def _config_int(cfg: dict, dotted_key: str, default: int, *, minimum: int) -> int:
    value = _config_get(cfg, dotted_key)
    # bool is an int subclass; `limit = true` is not a number.
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        return default
    return value


def load_settings(environ=None) -> Settings:
    """Build Settings from the environment and the global config file.

    Environment variables win over the config file.
    """
    if environ is None:
        environ = os.environ

    config_path = _global_config_path(environ)
    cfg = _read_toml_file(config_path)

    sessions_root = None
    if not environ.get(SESSIONS_DIR_ENV):
        configured_dir = _config_get(cfg, "sessions.dir")
        if isinstance(configured_dir, str) and configured_dir.strip():
            sessions_root = Path(configured_dir.strip()).expanduser()
    if sessions_root is None:
        sessions_root = resolve_sessions_root(environ)

    codex_cmd = (environ.get(CODEX_CMD_ENV) or "").strip()
    if not codex_cmd:
        configured_cmd = _config_get(cfg, "resume.codex_cmd")
        if isinstance(configured_cmd, str) and configured_cmd.strip():
            codex_cmd = configured_cmd.strip()
        else:
            codex_cmd = DEFAULT_CODEX_CMD

    return Settings(
        sessions_root=sessions_root,
        config_path=config_path,
        preview_chars=_config_int(cfg, "display.preview_chars", DEFAULT_PREVIEW_CHARS, minimum=1),
        limit=_config_int(cfg, "display.limit", DEFAULT_LIMIT, minimum=0),
        codex_cmd=codex_cmd,
        non_interactive=_env_truthy(environ, NON_INTERACTIVE_ENV),
    )
