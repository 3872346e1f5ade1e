"""CLI output formatting and helpers."""

import json as json_lib
from datetime import datetime

import typer


def init_context(ctx: typer.Context, json_output: bool = False, quiet_output: bool = False) -> None:
    """Initialize CLI context with standard flags."""
    if ctx.obj is None or not isinstance(ctx.obj, dict):
        ctx.obj = {}
    ctx.obj["json_output"] = json_output
    ctx.obj["quiet_output"] = quiet_output


def is_json_mode(ctx: typer.Context) -> bool:
    return ctx.obj.get("json_output", False) if ctx.obj else False


def is_quiet_mode(ctx: typer.Context) -> bool:
    return ctx.obj.get("quiet_output", False) if ctx.obj else False


def echo_json(data, ctx: typer.Context) -> bool:
    """Output data as JSON if in JSON mode. Returns True if output, False otherwise."""
    if is_json_mode(ctx):
        typer.echo(json_lib.dumps(data, indent=2, default=str))
        return True
    return False


def echo_text(msg: str, ctx: typer.Context) -> None:
    """Echo message only if not in quiet mode."""
    if not is_quiet_mode(ctx):
        typer.echo(msg)


def format_local_time(timestamp: str | None) -> str:
    """Format ISO timestamp as readable local time."""
    if not timestamp:
        return "never"
    try:
        dt = datetime.fromisoformat(timestamp)
        return dt.strftime("%Y-%m-%d %H:%M:%S")
    except (ValueError, TypeError):
        return timestamp
