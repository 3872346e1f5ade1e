import asyncio
from dataclasses import asdict

import typer

from archivist import config
from archivist.archives import api
from archivist.errors import ConfirmationRequired, NotFound
from archivist.lib import output
from archivist.lib.errors import error_feedback
from archivist.lib.store import default_store
from archivist.models import ArchiveRecord, OperationReport, Outcome, ScanReport
from archivist.platform import discord_gateway

app = typer.Typer(invoke_without_command=True, no_args_is_help=False)

GUILD_OPTION = typer.Option(None, "--guild", "-g", help="Guild id (defaults to config guild_id).")


@app.callback(invoke_without_command=True)
def archives_root(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", "-j", help="Output in JSON format."),
    quiet_output: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
):
    """Per-member archive categories (defaults to listing)."""
    parent = ctx.parent.obj if ctx.parent and ctx.parent.obj else {}
    output.init_context(
        ctx,
        json_output=json_output or parent.get("json_output", False),
        quiet_output=quiet_output or parent.get("quiet_output", False),
    )
    if ctx.invoked_subcommand is None:
        list_cmd(ctx)


def _row(record: ArchiveRecord) -> str:
    status = "enabled" if record.enabled else "disabled"
    created = output.format_local_time(record.created_at)
    return f"{record.name} ({status}) - {len(record.channels)} channels, author {record.author_id}, created {created}"


def _echo_report(ctx: typer.Context, report: OperationReport) -> None:
    if output.echo_json(
        {
            "status": report.outcome.value,
            "archive": report.archive,
            "action": report.action,
            "errors": report.errors,
        },
        ctx,
    ):
        return
    if report.outcome is Outcome.SUCCESS:
        output.echo_text(f"✓ {report.action} '{report.archive}' completed", ctx)
        return
    typer.echo(f"⚠️ {report.action} '{report.archive}' finished with {report.outcome.value} result:", err=True)
    for err in report.errors:
        typer.echo(f"  - {err}", err=True)


@app.command("list")
@error_feedback
def list_cmd(ctx: typer.Context):
    """List stored archives."""
    records = asyncio.run(api.list_archives(default_store()))
    if output.echo_json([r.to_dict() for r in records], ctx):
        return
    if not records:
        output.echo_text("No archives found", ctx)
        return
    output.echo_text(f"--- Archives ({len(records)}) ---", ctx)
    for record in sorted(records, key=lambda r: r.key):
        output.echo_text(_row(record), ctx)


@app.command()
@error_feedback
def show(ctx: typer.Context, name: str = typer.Argument(..., help="Archive name.")):
    """Show one stored archive and its channels."""
    record = asyncio.run(api.get_archive(default_store(), name))
    if record is None:
        raise NotFound(f"No archive named '{name}'", archive=name)
    if output.echo_json(record.to_dict(), ctx):
        return
    output.echo_text(_row(record), ctx)
    output.echo_text(f"  category: {record.category_id}", ctx)
    output.echo_text(f"  forum: {record.forum_channel_id}", ctx)
    output.echo_text(f"  working-notes: {record.working_notes_channel_id}", ctx)
    for channel in record.channels:
        output.echo_text(f"  #{channel.name} ({channel.id})", ctx)


@app.command()
@error_feedback
def search(ctx: typer.Context, query: str = typer.Argument(..., help="Text to look for.")):
    """Search archive and channel names."""
    records = asyncio.run(api.search_archives(default_store(), query))
    if output.echo_json([r.to_dict() for r in records], ctx):
        return
    if not records:
        output.echo_text(f"No archives match '{query}'", ctx)
        return
    for record in records:
        output.echo_text(_row(record), ctx)


@app.command()
@error_feedback
def info(
    ctx: typer.Context,
    author: str = typer.Option(None, "--author", "-a", help="Author member id."),
    name: str = typer.Option(None, "--name", "-n", help="Archive name."),
):
    """Show an archive with its author's statistics."""
    result = asyncio.run(api.get_info(default_store(), author_id=author, name=name))
    if output.echo_json(
        {
            "archive": result.record.to_dict(),
            "archives": [r.name for r in result.records],
            "stats": asdict(result.stats),
        },
        ctx,
    ):
        return
    stats = result.stats
    output.echo_text(_row(result.record), ctx)
    output.echo_text(f"Archives: {stats.total_archives} ({stats.enabled_archives} enabled, {stats.disabled_archives} disabled)", ctx)
    output.echo_text(f"Examples: {stats.total_examples}", ctx)
    if stats.categories_used:
        output.echo_text(f"Categories: {', '.join(stats.categories_used)}", ctx)
    if stats.recent_activity:
        output.echo_text("Recent activity:", ctx)
        for entry in stats.recent_activity:
            output.echo_text(f"  {entry.title} - {output.format_local_time(entry.created_at)}", ctx)


@app.command()
@error_feedback
def create(
    ctx: typer.Context,
    member_id: str = typer.Argument(..., help="Member the archive belongs to."),
    name: str = typer.Option(None, "--name", "-n", help="Archive name (defaults to display name)."),
    guild: int = GUILD_OPTION,
):
    """Create an archive category with its channels for a member."""

    async def action(platform):
        author = await platform.fetch_member(member_id)
        if author is None:
            raise NotFound(f"Member {member_id} is not in this guild")
        return await api.create(default_store(), platform, author, name=name)

    record = discord_gateway.run(action, guild)
    if output.echo_json({"status": "success", "archive": record.to_dict()}, ctx):
        return
    output.echo_text(
        f"✓ Created {record.name}{config.category_suffix()} with {len(record.channels)} topic channels",
        ctx,
    )


@app.command()
@error_feedback
def delete(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Archive name."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Confirm deletion."),
    guild: int = GUILD_OPTION,
):
    """Delete an archive's channels and its record."""
    if not yes:
        raise ConfirmationRequired(f"Refusing to delete '{name}' without --yes", archive=name)
    report = discord_gateway.run(
        lambda platform: api.delete(default_store(), platform, name, confirm=True), guild
    )
    _echo_report(ctx, report)
    if report.outcome is not Outcome.SUCCESS:
        raise typer.Exit(1)


def _toggle(ctx: typer.Context, name: str, enabled: bool, guild: int | None) -> None:
    report = discord_gateway.run(
        lambda platform: api.set_enabled(default_store(), platform, name, enabled), guild
    )
    _echo_report(ctx, report)
    if report.outcome is not Outcome.SUCCESS:
        raise typer.Exit(1)


@app.command()
@error_feedback
def enable(ctx: typer.Context, name: str = typer.Argument(...), guild: int = GUILD_OPTION):
    """Restore the author's posting rights on every topic channel."""
    _toggle(ctx, name, True, guild)


@app.command()
@error_feedback
def disable(ctx: typer.Context, name: str = typer.Argument(...), guild: int = GUILD_OPTION):
    """Revoke the author's posting rights on every topic channel."""
    _toggle(ctx, name, False, guild)


def _echo_scan(ctx: typer.Context, report: ScanReport) -> None:
    if output.echo_json(asdict(report), ctx):
        return
    output.echo_text(
        f"Found {report.categories_found} archive categories, {report.records_found} stored records",
        ctx,
    )
    if report.in_sync and not report.errors:
        output.echo_text("✓ Store is in sync with the server", ctx)
    for name in report.new_on_server:
        output.echo_text(f"  + {name} (on server, not stored)", ctx)
    for name in report.missing_from_server:
        output.echo_text(f"  - {name} (stored, not on server)", ctx)
    for err in report.errors:
        typer.echo(f"  ! {err}", err=True)
    if report.update_store:
        output.echo_text(
            f"Synced {report.synced}, removed {report.removed}, updated {report.updated}", ctx
        )


@app.command()
@error_feedback
def scan(
    ctx: typer.Context,
    sync: bool = typer.Option(False, "--sync", help="Apply differences to the record store."),
    guild: int = GUILD_OPTION,
):
    """Compare archive categories on the server with the record store."""
    report = discord_gateway.run(
        lambda platform: api.scan(default_store(), platform, update_store=sync), guild
    )
    _echo_scan(ctx, report)
