"""Command-line interface for codex-sessions."""

import json
import os
import shlex
import subprocess
from pathlib import Path

import click
from click_default_group import DefaultGroup
import questionary

from codex_sessions.config import Settings, load_settings
from codex_sessions.core import find_latest_session, recent_sessions
from codex_sessions.formatting import format_message_preview, format_time_ago, session_to_dict

NO_MESSAGE = "(no user message)"

pass_settings = click.make_pass_decorator(Settings)


def _target_directory(directory) -> str:
    return directory if directory else os.getcwd()


def _preview(session, limit: int) -> str:
    if session.last_user_message is None:
        return NO_MESSAGE
    return format_message_preview(session.last_user_message, limit)


@click.group(cls=DefaultGroup, default="list", default_if_no_args=True)
@click.version_option(None, "-v", "--version", package_name="codex-sessions")
@click.pass_context
def cli(ctx):
    """Find the Codex CLI sessions recorded for a working directory."""
    if ctx.obj is None:
        ctx.obj = load_settings()


@cli.command("list")
@click.argument("directory", required=False, type=click.Path(file_okay=False))
@click.option("--limit", type=click.IntRange(min=0), help="Maximum number of sessions to show (0 shows all).")
@click.option("--json", "as_json", is_flag=True, help="Print every matching session as JSON.")
@pass_settings
def list_cmd(settings, directory, limit, as_json):
    """List recent Codex sessions for DIRECTORY (default: current directory)."""
    target = _target_directory(directory)

    if as_json:
        sessions, total = recent_sessions(target, 0, sessions_root=settings.sessions_root)
        output = {
            "directory": target,
            "total": total,
            "sessions": [session_to_dict(s) for s in sessions],
        }
        click.echo(json.dumps(output, indent=2, ensure_ascii=False))
        return

    if limit is None:
        limit = settings.limit
    sessions, total = recent_sessions(target, limit, sessions_root=settings.sessions_root)
    if total == 0:
        click.echo(f"No Codex sessions found for {target}.")
        return

    click.echo(f"Codex: {total} session(s):")
    for session in sessions:
        click.echo(f"  - {format_time_ago(session.last_timestamp)} {_preview(session, settings.preview_chars)}")
    if total > len(sessions):
        click.echo(f"  ... and {total - len(sessions)} more")


@cli.command("latest")
@click.argument("directory", required=False, type=click.Path(file_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the session as JSON.")
@pass_settings
def latest_cmd(settings, directory, as_json):
    """Show the most recent Codex session for DIRECTORY."""
    target = _target_directory(directory)
    session = find_latest_session(target, sessions_root=settings.sessions_root)

    if as_json:
        click.echo(json.dumps(session_to_dict(session) if session else None, indent=2, ensure_ascii=False))
        return

    if session is None:
        click.echo(f"No Codex session found for {target}.")
        return

    click.echo(f"Session: {session.id}")
    click.echo(f"Last active: {format_time_ago(session.last_timestamp)}")
    click.echo(f"Last message: {_preview(session, settings.preview_chars)}")


def _select_session(sessions, *, preview_chars: int):
    choices = []
    for session in sessions:
        display = f"{format_time_ago(session.last_timestamp):>9}  {_preview(session, preview_chars)}"
        choices.append(questionary.Choice(title=display, value=session))

    return questionary.select(
        "Select a Codex session to resume:",
        choices=choices,
    ).ask()


@cli.command("resume")
@click.argument("directory", required=False, type=click.Path(file_okay=False))
@click.option("--latest", is_flag=True, help="Resume the most recent session without prompting.")
@click.option("--limit", default=10, type=click.IntRange(min=1), help="Maximum number of sessions to offer (default: 10).")
@click.option("--dry-run", is_flag=True, help="Print the command instead of running it.")
@pass_settings
def resume_cmd(settings, directory, latest, limit, dry_run):
    """Resume a Codex session recorded for DIRECTORY."""
    target = _target_directory(directory)

    if latest or settings.non_interactive:
        session = find_latest_session(target, sessions_root=settings.sessions_root)
        if session is None:
            click.echo(f"No Codex session found for {target}.")
            return
    else:
        sessions, _ = recent_sessions(target, limit, sessions_root=settings.sessions_root)
        if not sessions:
            click.echo(f"No Codex sessions found for {target}.")
            return
        session = _select_session(sessions, preview_chars=settings.preview_chars)
        if session is None:
            click.echo("No session selected.")
            return

    try:
        cmd = [*shlex.split(settings.codex_cmd), "resume", session.id]
    except ValueError as e:
        raise click.ClickException(f"Invalid codex command {settings.codex_cmd!r}: {e}")
    if not cmd[0]:
        raise click.ClickException("Codex command is empty")

    if dry_run:
        click.echo(shlex.join(cmd))
        return

    if not Path(target).is_dir():
        raise click.ClickException(f"Directory no longer exists: {target}")

    click.echo(f"Resuming {session.id} in {target}...", err=True)
    try:
        completed = subprocess.run(cmd, cwd=target)
        rc = int(completed.returncode)
    except FileNotFoundError:
        raise click.ClickException(
            f"Command not found: {cmd[0]!r} (set CODEX_SESSIONS_CODEX_CMD to override)"
        )
    except KeyboardInterrupt:
        rc = 130
    except OSError as e:
        raise click.ClickException(f"Failed to run {cmd[0]!r}: {e}")

    raise SystemExit(rc)


@cli.command("config")
@pass_settings
def config_cmd(settings):
    """Show the resolved configuration."""
    click.echo(f"Config file: {settings.config_path or '(unavailable)'}")
    click.echo(f"Sessions root: {settings.sessions_root or '(unavailable)'}")
    if settings.sessions_root is not None and not settings.sessions_root.exists():
        click.echo(f"warning: sessions root does not exist: {settings.sessions_root}", err=True)
    click.echo(f"Preview chars: {settings.preview_chars}")
    click.echo(f"Limit: {settings.limit}")
    click.echo(f"Codex command: {settings.codex_cmd}")