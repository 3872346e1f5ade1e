import json

import typer
from typer.testing import CliRunner

from archivist.errors import NotFound, PartialFailure, PermissionDenied
from archivist.lib import output
from archivist.lib.errors import error_feedback

runner = CliRunner()


def _app(exc):
    app = typer.Typer()

    @app.callback()
    def root(ctx: typer.Context, json_output: bool = typer.Option(False, "--json")):
        output.init_context(ctx, json_output=json_output)

    @app.command()
    @error_feedback
    def boom():
        raise exc

    return app


def test_domain_error_exits_with_message():
    result = runner.invoke(_app(NotFound("No archive named 'x'", archive="x")), ["boom"])

    assert result.exit_code == 1
    assert "No archive named 'x'" in result.output


def test_permission_error_mentions_manage_channels():
    result = runner.invoke(_app(PermissionDenied("create channel: missing permissions")), ["boom"])

    assert result.exit_code == 1
    assert "Manage Channels" in result.output


def test_partial_failure_lists_each_error():
    exc = PartialFailure("delete of 'x' failed", ["#a: gone", "#b: denied"], archive="x")
    result = runner.invoke(_app(exc), ["boom"])

    assert result.exit_code == 1
    assert "#a: gone" in result.output
    assert "#b: denied" in result.output


def test_json_mode_reports_structured_error():
    result = runner.invoke(_app(NotFound("missing", archive="x")), ["--json", "boom"])

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload == {"status": "error", "kind": "NotFound", "message": "missing", "archive": "x"}


def test_value_error_reported_as_invalid_input():
    result = runner.invoke(_app(ValueError("bad duration")), ["boom"])

    assert result.exit_code == 1
    assert "Invalid input: bad duration" in result.output
