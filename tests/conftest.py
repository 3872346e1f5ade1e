import asyncio
import itertools
from datetime import UTC, datetime

import pytest

from archivist import config
from archivist.errors import PlatformError
from archivist.lib.store import MemoryRecordStore
from archivist.platform.base import ChannelKind, Member, Overwrite, RemoteChannel


class FakePlatform:
    """In-memory channel platform.

    ``fail`` maps a channel id or name to the error class raised when that channel
    is created, edited or deleted.
    """

    def __init__(self, members=(), owner_id="1", bot=None):
        self.channels: dict[str, RemoteChannel] = {}
        self.members = {m.id: m for m in members}
        self.owner = owner_id
        self.bot = bot
        self.fail: dict[str, type[PlatformError]] = {}
        self.calls: list[tuple] = []
        self.timeouts: list[tuple] = []
        self.member_lists = 0
        self._ids = itertools.count(1000)

    @property
    def owner_id(self):
        return self.owner

    def _check(self, action, *keys):
        for key in keys:
            error = self.fail.get(key)
            if error:
                raise error(f"{action} {key} failed", channel=key)

    def add(self, name, kind, parent_id=None, overwrites=(), created_at=None):
        channel = RemoteChannel(
            id=str(next(self._ids)),
            name=name,
            kind=kind,
            parent_id=parent_id,
            created_at=created_at or datetime(2024, 1, 1, tzinfo=UTC),
            overwrites=list(overwrites),
        )
        self.channels[channel.id] = channel
        return channel

    def children(self, parent_id):
        return [c for c in self.channels.values() if c.parent_id == parent_id]

    def by_name(self, name):
        return next(c for c in self.channels.values() if c.name == name)

    async def create_category(self, name, overwrites):
        self._check("create", name)
        self.calls.append(("create_category", name))
        return self.add(name, ChannelKind.CATEGORY, overwrites=overwrites)

    async def create_channel(self, name, kind, parent_id, topic=None, overwrites=None):
        self._check("create", name)
        self.calls.append(("create_channel", name))
        channel = self.add(name, kind, parent_id=parent_id, overwrites=overwrites or ())
        channel.topic = topic
        return channel

    async def edit_member_overwrite(self, channel_id, member_id, changes):
        channel = self.channels[channel_id]
        self._check("edit", channel_id, channel.name)
        self.calls.append(("edit", channel_id, dict(changes)))
        existing = next((o for o in channel.overwrites if o.target == member_id), None)
        allow = set(existing.allow) if existing else set()
        deny = set(existing.deny) if existing else set()
        for perm, value in changes.items():
            (allow if value else deny).add(perm)
            (deny if value else allow).discard(perm)
        channel.overwrites = [o for o in channel.overwrites if o.target != member_id]
        channel.overwrites.append(Overwrite.member(member_id, allow, deny))

    async def delete_channel(self, channel_id, reason=None):
        channel = self.channels.get(channel_id)
        if channel is None:
            raise PlatformError("Unknown Channel", channel=channel_id)
        self._check("delete", channel_id, channel.name)
        self.calls.append(("delete", channel_id))
        del self.channels[channel_id]

    async def list_channels(self, parent_id=None):
        channels = list(self.channels.values())
        if parent_id is None:
            return channels
        return [c for c in channels if c.parent_id == parent_id]

    async def list_overwrites(self, channel_id):
        self._check("list overwrites", channel_id)
        return list(self.channels[channel_id].overwrites)

    async def list_members(self):
        self.member_lists += 1
        return list(self.members.values())

    async def fetch_member(self, member_id):
        return self.members.get(str(member_id))

    async def timeout_member(self, member_id, duration, reason):
        self.timeouts.append((member_id, duration, reason))

    async def bot_member(self):
        return self.bot


@pytest.fixture(autouse=True)
def archivist_home(monkeypatch, tmp_path):
    """Point the data directory at tmp_path so no test reads the real ~/.archivist."""
    home = tmp_path / "archivist-home"
    monkeypatch.setenv("ARCHIVIST_HOME", str(home))
    monkeypatch.delenv(config.TOKEN_ENV, raising=False)
    config._clear_cache()
    yield home
    config._clear_cache()


@pytest.fixture
def alice():
    return Member(id="111", username="alice", display_name="Alice", global_name="Alice A")


@pytest.fixture
def bob():
    return Member(id="222", username="bob_builder", display_name="Bob", global_name=None)


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def platform(alice, bob):
    return FakePlatform(members=[alice, bob])


@pytest.fixture
def fake_gateway(monkeypatch, platform):
    """Route CLI remote commands to the in-memory platform instead of Discord."""
    from archivist.platform import discord_gateway

    monkeypatch.setattr(
        discord_gateway, "run", lambda action, guild_id=None: asyncio.run(action(platform))
    )
    return platform
