import typer

from archivist.lib import output
from archivist.lib.errors import error_feedback
from archivist.moderation import timeouts
from archivist.platform import discord_gateway


@error_feedback
def mute(
    ctx: typer.Context,
    member_id: str = typer.Argument(..., help="Member to time out."),
    duration: str = typer.Argument(..., help="Duration, e.g. 10m, 1h, 1d."),
    reason: str = typer.Option(None, "--reason", "-r", help="Reason shown in the audit log."),
    guild: int = typer.Option(None, "--guild", "-g", help="Guild id (defaults to config guild_id)."),
):
    """Time out a member for a duration (at most 28 days)."""
    period = timeouts.validate_duration(timeouts.parse_duration(duration))
    target = discord_gateway.run(
        lambda platform: timeouts.mute(platform, member_id, period, reason), guild
    )
    if output.echo_json(
        {
            "status": "success",
            "member": target.id,
            "duration": duration,
            "reason": reason or timeouts.DEFAULT_REASON,
        },
        ctx,
    ):
        return
    output.echo_text(
        f"Successfully muted {target.username}\nReason: {reason or timeouts.DEFAULT_REASON}\nTime: {duration}.",
        ctx,
    )
