"""Discord implementation of the channel platform, built on discord.py.

Only the REST side of the client is used: ``connect`` logs in, fetches the guild
and yields a ``DiscordPlatform`` bound to it, without opening a gateway session.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

import discord

from archivist import config
from archivist.errors import ArchivistError, PermissionDenied, PlatformError
from archivist.platform.base import (
    EVERYONE,
    PERMISSIONS,
    ChannelKind,
    Member,
    Overwrite,
    RemoteChannel,
    TargetKind,
)

logger = logging.getLogger(__name__)

_KINDS = {
    discord.ChannelType.category: ChannelKind.CATEGORY,
    discord.ChannelType.text: ChannelKind.TEXT,
    discord.ChannelType.forum: ChannelKind.FORUM,
}

REASON = "archivist"


def _names(permissions: discord.Permissions) -> frozenset[str]:
    """Granted permissions among ``PERMISSIONS``, named as in ``platform.base``."""
    return frozenset(name for name in PERMISSIONS if getattr(permissions, name))


class DiscordPlatform:
    def __init__(self, guild: discord.Guild, bot_user_id: int | None = None):
        self.guild = guild
        self.bot_user_id = bot_user_id
        self._channels: dict[int, discord.abc.GuildChannel] = {}

    @property
    def owner_id(self) -> str | None:
        return str(self.guild.owner_id) if self.guild.owner_id else None

    async def _call(self, action: str, awaitable, channel: str | None = None):
        try:
            return await awaitable
        except discord.Forbidden as e:
            raise PermissionDenied(f"{action}: missing permissions ({e.text or e})", channel=channel) from e
        except discord.HTTPException as e:
            raise PlatformError(f"{action}: {e.text or e}", channel=channel) from e

    def _target(self, target: str):
        if target == EVERYONE:
            return self.guild.default_role
        return discord.Object(id=int(target))

    def _overwrite_map(self, overwrites: list[Overwrite]) -> dict:
        mapping = {}
        for ow in overwrites:
            perms = {name: True for name in ow.allow}
            perms.update({name: False for name in ow.deny})
            mapping[self._target(ow.target)] = discord.PermissionOverwrite(**perms)
        return mapping

    def _convert_overwrites(self, channel: discord.abc.GuildChannel) -> list[Overwrite]:
        result = []
        for target, overwrite in channel.overwrites.items():
            is_role = isinstance(target, discord.Role) or (
                isinstance(target, discord.Object) and target.type is discord.Role
            )
            allow, deny = overwrite.pair()
            target_id = EVERYONE if target.id == self.guild.id else str(target.id)
            result.append(
                Overwrite(
                    target_id,
                    TargetKind.ROLE if is_role else TargetKind.MEMBER,
                    _names(allow),
                    _names(deny),
                )
            )
        return result

    def _convert(self, channel: discord.abc.GuildChannel) -> RemoteChannel:
        self._channels[channel.id] = channel
        category_id = getattr(channel, "category_id", None)
        return RemoteChannel(
            id=str(channel.id),
            name=channel.name,
            kind=_KINDS.get(channel.type, ChannelKind.OTHER),
            parent_id=str(category_id) if category_id else None,
            topic=getattr(channel, "topic", None),
            created_at=channel.created_at,
            overwrites=self._convert_overwrites(channel),
        )

    @staticmethod
    def _member(member: discord.Member) -> Member:
        return Member(
            id=str(member.id),
            username=member.name,
            display_name=member.display_name,
            global_name=member.global_name,
            is_admin=member.guild_permissions.administrator,
            top_role_position=member.top_role.position if member.top_role else 0,
        )

    async def _resolve(self, channel_id: str) -> discord.abc.GuildChannel:
        cid = int(channel_id)
        channel = self._channels.get(cid) or self.guild.get_channel(cid)
        if channel is None:
            channel = await self._call(
                "fetch channel", self.guild.fetch_channel(cid), channel=channel_id
            )
            self._channels[cid] = channel
        return channel

    async def _discord_member(self, member_id: str) -> discord.Member:
        return await self._call("fetch member", self.guild.fetch_member(int(member_id)))

    async def create_category(self, name: str, overwrites: list[Overwrite]) -> RemoteChannel:
        category = await self._call(
            f"create category '{name}'",
            self.guild.create_category(
                name, overwrites=self._overwrite_map(overwrites), reason=REASON
            ),
            channel=name,
        )
        return self._convert(category)

    async def create_channel(
        self,
        name: str,
        kind: ChannelKind,
        parent_id: str,
        topic: str | None = None,
        overwrites: list[Overwrite] | None = None,
    ) -> RemoteChannel:
        parent = await self._resolve(parent_id)
        kwargs = {"category": parent, "reason": REASON}
        if topic:
            kwargs["topic"] = topic
        if overwrites is not None:
            kwargs["overwrites"] = self._overwrite_map(overwrites)

        if kind is ChannelKind.FORUM:
            create = self.guild.create_forum(name, **kwargs)
        elif kind is ChannelKind.TEXT:
            create = self.guild.create_text_channel(name, **kwargs)
        else:
            raise ValueError(f"Cannot create channel of kind {kind.value}")

        channel = await self._call(f"create channel '{name}'", create, channel=name)
        return self._convert(channel)

    async def edit_member_overwrite(
        self, channel_id: str, member_id: str, changes: dict[str, bool]
    ) -> None:
        channel = await self._resolve(channel_id)
        member = await self._discord_member(member_id)
        overwrite = channel.overwrites_for(member)
        overwrite.update(**changes)
        await self._call(
            f"edit permissions on '{channel.name}'",
            channel.set_permissions(member, overwrite=overwrite, reason=REASON),
            channel=channel_id,
        )

    async def delete_channel(self, channel_id: str, reason: str | None = None) -> None:
        channel = await self._resolve(channel_id)
        await self._call(
            f"delete channel '{channel.name}'",
            channel.delete(reason=reason or REASON),
            channel=channel_id,
        )
        self._channels.pop(int(channel_id), None)

    async def list_channels(self, parent_id: str | None = None) -> list[RemoteChannel]:
        channels = await self._call("list channels", self.guild.fetch_channels())
        converted = [self._convert(c) for c in channels]
        if parent_id is None:
            return converted
        return [c for c in converted if c.parent_id == str(parent_id)]

    async def list_overwrites(self, channel_id: str) -> list[Overwrite]:
        channel = await self._resolve(channel_id)
        return self._convert_overwrites(channel)

    async def list_members(self) -> list[Member]:
        try:
            return [self._member(m) async for m in self.guild.fetch_members(limit=None)]
        except discord.Forbidden as e:
            raise PermissionDenied(f"list members: missing permissions ({e.text or e})") from e
        except discord.HTTPException as e:
            raise PlatformError(f"list members: {e.text or e}") from e

    async def fetch_member(self, member_id: str) -> Member | None:
        try:
            member = await self.guild.fetch_member(int(member_id))
        except discord.NotFound:
            return None
        except discord.Forbidden as e:
            raise PermissionDenied(f"fetch member: missing permissions ({e.text or e})") from e
        except discord.HTTPException as e:
            raise PlatformError(f"fetch member: {e.text or e}") from e
        return self._member(member)

    async def timeout_member(self, member_id: str, duration: timedelta, reason: str) -> None:
        member = await self._discord_member(member_id)
        await self._call(f"timeout member {member_id}", member.timeout(duration, reason=reason))

    async def bot_member(self) -> Member | None:
        if self.bot_user_id is None:
            return None
        return await self.fetch_member(str(self.bot_user_id))


@asynccontextmanager
async def connect(token: str, guild_id: int) -> AsyncIterator[DiscordPlatform]:
    """Log in with ``token`` and yield a platform bound to ``guild_id``."""
    intents = discord.Intents.default()
    intents.members = True
    client = discord.Client(intents=intents)
    try:
        await client.login(token)
        try:
            guild = await client.fetch_guild(guild_id)
        except discord.Forbidden as e:
            raise PermissionDenied(f"Bot cannot access guild {guild_id}") from e
        except discord.HTTPException as e:
            raise PlatformError(f"Cannot fetch guild {guild_id}: {e.text or e}") from e
        logger.info(f"Connected to guild {guild.name} ({guild.id})")
        yield DiscordPlatform(guild, bot_user_id=client.user.id if client.user else None)
    finally:
        await client.close()


def run(action, guild_id: int | None = None):
    """Connect with the configured token and guild, and run ``action(platform)`` to completion."""
    token = config.token()
    if not token:
        raise ArchivistError(f"Set {config.TOKEN_ENV} to the bot token")
    guild_id = guild_id or config.guild_id()
    if guild_id is None:
        raise ArchivistError("No guild configured; pass --guild or set guild_id in config.yaml")

    async def runner():
        async with connect(token, guild_id) as platform:
            return await action(platform)

    return asyncio.run(runner())
