import typer

from archivist import config
from archivist.analysis import cli as analysis_cli
from archivist.archives import cli as archives_cli
from archivist.lib import logs, output, paths
from archivist.moderation import cli as moderation_cli

app = typer.Typer(invoke_without_command=True, no_args_is_help=False, add_completion=False)


@app.callback(invoke_without_command=True)
def common_options_callback(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output in JSON format."),
    quiet_output: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
):
    """Archive channels, script checks and moderation for a Bedrock scripting Discord server."""
    output.init_context(ctx, json_output, quiet_output)
    try:
        level = "DEBUG" if verbose else config.log_level()
    except ValueError as e:
        typer.echo(f"Invalid config at {paths.config_file()}: {e}", err=True)
        raise typer.Exit(1) from e
    logs.setup(level)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


@app.command()
def init():
    """Create the archivist data directory and default config."""
    paths.data_dir().mkdir(parents=True, exist_ok=True)
    target = config.init_config()

    typer.echo(f"✓ Config at {target}")
    typer.echo(f"✓ Records file at {config.records_file()}")
    typer.echo()
    typer.echo("Next steps:")
    typer.echo(f"  1. Set guild_id in {target}")
    typer.echo(f"  2. Export {config.TOKEN_ENV}=<bot token>")
    typer.echo("  3. Run: archivist archives scan --sync")


app.command("analyze")(analysis_cli.analyze)
app.command("fix")(analysis_cli.fix)
app.command("mute")(moderation_cli.mute)
app.add_typer(archives_cli.app, name="archives")


def main() -> None:
    """Entry point for archivist command."""
    try:
        app()
    except SystemExit:
        raise
    except BaseException as e:
        raise SystemExit(1) from e
