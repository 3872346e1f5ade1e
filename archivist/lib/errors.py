"""CLI error handling: wrap commands to report errors instead of silent failures."""

import json
from functools import wraps

import typer
from click import get_current_context
from click.exceptions import Exit

from archivist.errors import ArchivistError, PartialFailure, PermissionDenied


def _report(message: str, payload: dict) -> None:
    ctx = get_current_context(silent=True)
    if ctx is not None and ctx.obj and ctx.obj.get("json_output"):
        typer.echo(json.dumps({"status": "error", **payload}, indent=2))
    else:
        typer.echo(message, err=True)


def error_feedback(f):
    """Wrap command to catch exceptions and report them before exiting.

    Domain errors get their own wording; common errors (ValueError, OSError, etc.)
    are echoed to stderr before raising SystemExit(1).
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (SystemExit, Exit):
            raise
        except PermissionDenied as e:
            _report(
                f"❌ Permission error: {e}. The bot needs the Manage Channels permission.",
                {"kind": "PermissionDenied", "message": str(e), "archive": e.archive},
            )
            raise typer.Exit(1) from e
        except PartialFailure as e:
            lines = "\n".join(f"  - {err}" for err in e.errors)
            _report(
                f"⚠️ {e}\n{lines}",
                {"kind": "PartialFailure", "message": str(e), "errors": e.errors},
            )
            raise typer.Exit(1) from e
        except ArchivistError as e:
            _report(
                f"❌ {e}",
                {"kind": type(e).__name__, "message": str(e), "archive": e.archive},
            )
            raise typer.Exit(1) from e
        except (ValueError, KeyError, TypeError) as e:
            _report(f"Invalid input: {e}", {"kind": "InvalidInput", "message": str(e)})
            raise typer.Exit(1) from e
        except OSError as e:
            _report(f"File error: {e}", {"kind": "FileError", "message": str(e)})
            raise typer.Exit(1) from e
        except Exception as e:
            _report(f"Error: {e}", {"kind": type(e).__name__, "message": str(e)})
            raise typer.Exit(1) from e

    return wrapper
