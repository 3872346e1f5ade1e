from pathlib import Path

import typer

from archivist.analysis import analyzer, extract, fixer, format
from archivist.lib import output
from archivist.lib.errors import error_feedback


def _read(source: str, from_message: bool) -> str:
    if source == "-":
        text = typer.get_text_stream("stdin").read()
    else:
        text = Path(source).read_text(encoding="utf-8")
    return extract.extract_code(text) if from_message else text


def _json_flag(ctx: typer.Context, json_output: bool) -> None:
    if json_output:
        output.init_context(ctx, json_output=True, quiet_output=output.is_quiet_mode(ctx))


@error_feedback
def analyze(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Script file, or - for stdin."),
    from_message: bool = typer.Option(
        False, "--message", "-m", help="Input is a chat message; analyze the code inside it."
    ),
    show_code: bool = typer.Option(False, "--preview", help="Include a code preview."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output in JSON format."),
):
    """Check a script for syntax errors and common Bedrock scripting issues."""
    _json_flag(ctx, json_output)
    code = _read(source, from_message)
    if not code.strip():
        raise ValueError("No code found in the input")
    report = analyzer.analyze(code)
    if output.echo_json(report.to_dict(), ctx):
        return
    typer.echo(format.render(report, code if show_code else None))
    if report.errors:
        raise typer.Exit(1)


@error_feedback
def fix(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Script file, or - for stdin."),
    semicolons: bool = typer.Option(True, "--semicolons/--no-semicolons", help="Insert missing semicolons."),
    modernize: bool = typer.Option(True, "--modernize/--no-modernize", help="Replace var and loose equality."),
    write: bool = typer.Option(False, "--write", "-w", help="Rewrite the file in place."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output in JSON format."),
):
    """Print (or write back) the script with automatic fixes applied."""
    _json_flag(ctx, json_output)
    code = _read(source, from_message=False)
    fixed = code
    if modernize:
        fixed = fixer.modernize_declarations(fixed)
    if semicolons:
        fixed = fixer.add_semicolons(fixed)

    if write and source != "-":
        if fixed != code:
            Path(source).write_text(fixed, encoding="utf-8")
        if not output.echo_json({"status": "success", "file": source, "changed": fixed != code}, ctx):
            output.echo_text(f"✓ {source} {'updated' if fixed != code else 'already clean'}", ctx)
        return

    if output.echo_json({"original": code, "fixed": fixed, "changed": fixed != code}, ctx):
        return
    typer.echo(fixed, nl=False)
