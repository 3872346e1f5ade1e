from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from archivist.archives import catalog
from archivist.errors import ArchivistError, PermissionDenied, PlatformError
from archivist.platform import discord_gateway
from archivist.platform.base import EVERYONE, ChannelKind, Overwrite, TargetKind
from archivist.platform.discord_gateway import DiscordPlatform

GUILD_ID = 1


def http_error(cls, status, text):
    response = MagicMock(status=status, reason="Error")
    return cls(response, text)


def fake_channel(id, name, type, category_id=None, overwrites=None):
    channel = MagicMock()
    channel.id = id
    channel.name = name
    channel.type = type
    channel.category_id = category_id
    channel.topic = None
    channel.created_at = datetime(2024, 1, 1, tzinfo=UTC)
    channel.overwrites = overwrites or {}
    return channel


@pytest.fixture
def guild():
    guild = MagicMock()
    guild.id = GUILD_ID
    guild.owner_id = 42
    return guild


def test_owner_id(guild):
    assert DiscordPlatform(guild).owner_id == "42"


@pytest.mark.asyncio
async def test_forbidden_becomes_permission_denied(guild):
    guild.create_category = AsyncMock(
        side_effect=http_error(discord.Forbidden, 403, "Missing Permissions")
    )

    with pytest.raises(PermissionDenied) as exc:
        await DiscordPlatform(guild).create_category("Alice's Archive", [])

    assert "Missing Permissions" in str(exc.value)
    assert exc.value.channel == "Alice's Archive"


@pytest.mark.asyncio
async def test_http_error_becomes_platform_error(guild):
    guild.fetch_channels = AsyncMock(side_effect=http_error(discord.HTTPException, 500, "boom"))

    with pytest.raises(PlatformError) as exc:
        await DiscordPlatform(guild).list_channels()

    assert not isinstance(exc.value, PermissionDenied)
    assert "boom" in str(exc.value)


def test_overwrite_map(guild):
    mapping = DiscordPlatform(guild)._overwrite_map(
        [Overwrite.everyone(deny=("send_messages",)), Overwrite.member("111", allow=("send_messages",))]
    )

    assert mapping[guild.default_role].send_messages is False
    member_overwrite = mapping[discord.Object(id=111)]
    assert member_overwrite.send_messages is True
    assert member_overwrite.view_channel is None


def test_convert_overwrites(guild):
    channel = fake_channel(
        10,
        "block-examples",
        discord.ChannelType.forum,
        overwrites={
            discord.Object(id=GUILD_ID, type=discord.Role): discord.PermissionOverwrite(
                view_channel=True, send_messages=False
            ),
            discord.Object(id=111): discord.PermissionOverwrite(send_messages=True),
        },
    )

    everyone, author = DiscordPlatform(guild)._convert_overwrites(channel)

    assert everyone.target == EVERYONE
    assert everyone.kind is TargetKind.ROLE
    assert everyone.allow == frozenset({"view_channel"})
    assert everyone.deny == frozenset({"send_messages"})
    assert author.target == "111"
    assert author.kind is TargetKind.MEMBER
    assert author.allow == frozenset({"send_messages"})


def test_overwrites_round_trip(guild):
    guild.default_role = discord.Object(id=GUILD_ID, type=discord.Role)
    platform = DiscordPlatform(guild)
    overwrites = catalog.notes_overwrites("111") + catalog.topic_overwrites("222")[1:]
    channel = fake_channel(
        10, "working-notes", discord.ChannelType.forum, overwrites=platform._overwrite_map(overwrites)
    )

    assert platform._convert_overwrites(channel) == overwrites


@pytest.mark.asyncio
async def test_list_channels_filters_by_parent(guild):
    guild.fetch_channels = AsyncMock(
        return_value=[
            fake_channel(5, "Alice's Archive", discord.ChannelType.category),
            fake_channel(6, "forum", discord.ChannelType.text, category_id=5),
            fake_channel(7, "general", discord.ChannelType.text),
            fake_channel(8, "stage", discord.ChannelType.stage_voice, category_id=5),
        ]
    )
    platform = DiscordPlatform(guild)

    children = await platform.list_channels(parent_id="5")

    assert [(c.id, c.kind) for c in children] == [("6", ChannelKind.TEXT), ("8", ChannelKind.OTHER)]


@pytest.mark.asyncio
async def test_create_forum_channel(guild):
    parent = fake_channel(5, "Alice's Archive", discord.ChannelType.category)
    guild.get_channel = MagicMock(return_value=parent)
    guild.create_forum = AsyncMock(
        return_value=fake_channel(9, "block-examples", discord.ChannelType.forum, category_id=5)
    )

    created = await DiscordPlatform(guild).create_channel(
        "block-examples", ChannelKind.FORUM, "5", topic="Blocks", overwrites=[]
    )

    assert created.kind is ChannelKind.FORUM
    assert created.parent_id == "5"
    kwargs = guild.create_forum.call_args.kwargs
    assert kwargs["category"] is parent
    assert kwargs["topic"] == "Blocks"
    assert kwargs["overwrites"] == {}


@pytest.mark.asyncio
async def test_create_channel_rejects_other_kinds(guild):
    with pytest.raises(ValueError):
        await DiscordPlatform(guild).create_channel("x", ChannelKind.CATEGORY, "5")


@pytest.mark.asyncio
async def test_fetch_member_missing_returns_none(guild):
    guild.fetch_member = AsyncMock(side_effect=http_error(discord.NotFound, 404, "Unknown Member"))

    assert await DiscordPlatform(guild).fetch_member("111") is None


@pytest.mark.asyncio
async def test_fetch_member_converts(guild):
    member = MagicMock()
    member.id = 111
    member.name = "alice"
    member.display_name = "Alice"
    member.global_name = "Alice A"
    member.guild_permissions.administrator = False
    member.top_role.position = 3
    guild.fetch_member = AsyncMock(return_value=member)

    result = await DiscordPlatform(guild).fetch_member("111")

    assert (result.id, result.username, result.top_role_position) == ("111", "alice", 3)
    assert result.names() == ["alice", "Alice", "Alice A"]


@pytest.mark.asyncio
async def test_bot_member_without_user(guild):
    assert await DiscordPlatform(guild).bot_member() is None


def test_run_requires_token():
    with pytest.raises(ArchivistError, match="ARCHIVIST_TOKEN"):
        discord_gateway.run(AsyncMock(), 123)


def test_run_requires_guild(monkeypatch):
    monkeypatch.setenv("ARCHIVIST_TOKEN", "token")

    with pytest.raises(ArchivistError, match="No guild configured"):
        discord_gateway.run(AsyncMock())
