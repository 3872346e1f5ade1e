"""Member timeouts ("mute")."""

import logging
import re
from datetime import timedelta

from archivist import config
from archivist.errors import NotFound, TargetProtected
from archivist.platform.base import ChannelPlatform, Member

logger = logging.getLogger(__name__)

DEFAULT_REASON = "No reason provided"

_DURATION = re.compile(
    r"^(?P<value>-?\d*\.?\d+)\s*(?P<unit>"
    r"milliseconds?|msecs?|ms|seconds?|secs?|s|minutes?|mins?|m|"
    r"hours?|hrs?|h|days?|d|weeks?|w|years?|yrs?|y)?$",
    re.IGNORECASE,
)

_UNIT_MS = {
    "ms": 1,
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
    "w": 7 * 24 * 60 * 60 * 1000,
    "y": 365.25 * 24 * 60 * 60 * 1000,
}


def _unit(name: str) -> str:
    name = name.lower()
    if name.startswith(("ms", "milli")):
        return "ms"
    if name.startswith("mi") or name == "m":
        return "m"
    return name[0]


def parse_duration(text: str) -> timedelta | None:
    """Parse ``10m``, ``1h``, ``2 days``, ``500ms``... Bare numbers are milliseconds.

    Returns None for anything unparseable or not positive.
    """
    match = _DURATION.match(text.strip())
    if not match:
        return None
    value = float(match.group("value"))
    unit = _unit(match.group("unit")) if match.group("unit") else "ms"
    millis = value * _UNIT_MS[unit]
    if millis <= 0:
        return None
    return timedelta(milliseconds=millis)


def check_target(
    target: Member,
    bot: Member | None = None,
    moderator: Member | None = None,
    guild_owner_id: str | None = None,
) -> str | None:
    """Reason the target may not be muted, or None if it may."""
    if guild_owner_id and target.id == str(guild_owner_id):
        return "You cannot mute the server owner."
    if moderator and target.id == moderator.id:
        return "You cannot mute yourself."
    if bot and target.id == bot.id:
        return "You cannot mute me."
    if target.is_admin:
        return "You cannot mute an administrator."
    if bot and bot.top_role_position <= target.top_role_position:
        return "I cannot mute this user because they have the same or a higher role than me."
    if moderator and moderator.top_role_position <= target.top_role_position:
        return "You cannot mute this user because they have the same or a higher role than you."
    return None


def validate_duration(duration: timedelta | None, max_days: int | None = None) -> timedelta:
    max_days = max_days or config.mute_max_days()
    if duration is None:
        raise ValueError("Invalid time format. Please use a valid format (e.g., '10m', '1h', '1d').")
    if duration > timedelta(days=max_days):
        raise ValueError(f"The timeout duration cannot be longer than {max_days} days.")
    return duration


async def mute(
    platform: ChannelPlatform,
    member_id: str,
    duration: timedelta | None,
    reason: str | None = None,
    max_days: int | None = None,
) -> Member:
    """Time out ``member_id`` for ``duration``.

    Raises:
        ValueError: duration missing or over the limit.
        NotFound: the member is not in the guild.
        TargetProtected: the target may not be muted (see ``check_target``).
    """
    duration = validate_duration(duration, max_days)
    target = await platform.fetch_member(member_id)
    if target is None:
        raise NotFound(f"Member {member_id} doesn't exist in this server.")

    bot = await platform.bot_member()
    refusal = check_target(target, bot=bot, guild_owner_id=platform.owner_id)
    if refusal:
        raise TargetProtected(refusal)

    await platform.timeout_member(target.id, duration, reason or DEFAULT_REASON)
    logger.info(f"Muted {target.username} ({target.id}) for {duration}: {reason or DEFAULT_REASON}")
    return target
