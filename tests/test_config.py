"""Tests for settings resolution."""

from pathlib import Path

import codex_sessions.config as config


def _write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_settings_defaults(tmp_path):
    env = {"CODEX_SESSIONS_CONFIG": str(tmp_path / "missing.toml"), "CODEX_HOME": str(tmp_path / "codex")}

    settings = config.load_settings(env)

    assert settings.sessions_root == tmp_path / "codex" / "sessions"
    assert settings.preview_chars == config.DEFAULT_PREVIEW_CHARS
    assert settings.limit == config.DEFAULT_LIMIT
    assert settings.codex_cmd == "codex"
    assert settings.non_interactive is False


def test_load_settings_reads_config_file(tmp_path):
    path = _write_config(
        tmp_path,
        """
[sessions]
dir = "~/rollouts"

[display]
preview_chars = 40
limit = 0

[resume]
codex_cmd = "codex --full-auto"
""",
    )
    env = {"CODEX_SESSIONS_CONFIG": str(path), "HOME": str(tmp_path)}

    settings = config.load_settings(env)

    assert settings.config_path == path
    assert settings.sessions_root == Path("~/rollouts").expanduser()
    assert settings.preview_chars == 40
    assert settings.limit == 0
    assert settings.codex_cmd == "codex --full-auto"


def test_environment_overrides_config_file(tmp_path):
    path = _write_config(
        tmp_path,
        '[sessions]\ndir = "/from/config"\n[resume]\ncodex_cmd = "from-config"\n',
    )
    env = {
        "CODEX_SESSIONS_CONFIG": str(path),
        "CODEX_SESSIONS_DIR": str(tmp_path / "from-env"),
        "CODEX_SESSIONS_CODEX_CMD": "from-env",
        "CODEX_SESSIONS_NON_INTERACTIVE": "yes",
    }

    settings = config.load_settings(env)

    assert settings.sessions_root == tmp_path / "from-env"
    assert settings.codex_cmd == "from-env"
    assert settings.non_interactive is True


def test_invalid_config_values_fall_back_to_defaults(tmp_path):
    path = _write_config(tmp_path, '[display]\npreview_chars = 0\nlimit = true\n[sessions]\ndir = 5\n')
    env = {"CODEX_SESSIONS_CONFIG": str(path), "CODEX_HOME": str(tmp_path)}

    settings = config.load_settings(env)

    assert settings.preview_chars == config.DEFAULT_PREVIEW_CHARS
    assert settings.limit == config.DEFAULT_LIMIT
    assert settings.sessions_root == tmp_path / "sessions"


def test_malformed_config_file_is_ignored(tmp_path):
    path = _write_config(tmp_path, "[display\npreview_chars = ")
    env = {"CODEX_SESSIONS_CONFIG": str(path), "CODEX_SESSIONS_DIR": str(tmp_path)}

    settings = config.load_settings(env)

    assert settings.sessions_root == tmp_path
    assert settings.preview_chars == config.DEFAULT_PREVIEW_CHARS


def test_global_config_path_uses_xdg(tmp_path, monkeypatch):
    monkeypatch.setattr(config.sys, "platform", "linux")
    monkeypatch.setattr(config.os, "name", "posix")

    path = config._global_config_path({"XDG_CONFIG_HOME": str(tmp_path)})

    assert path == tmp_path / "codex-sessions" / "config.toml"
