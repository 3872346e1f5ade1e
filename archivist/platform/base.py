"""Channel platform contract consumed by the archive lifecycle engine.

Implementations raise ``PermissionDenied`` when the platform refuses a request
for lack of permissions and ``PlatformError`` for any other failure.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol

EVERYONE = "@everyone"

VIEW_CHANNEL = "view_channel"
READ_MESSAGE_HISTORY = "read_message_history"
SEND_MESSAGES = "send_messages"
MANAGE_THREADS = "manage_threads"
CREATE_PUBLIC_THREADS = "create_public_threads"
MANAGE_MESSAGES = "manage_messages"

PERMISSIONS = (
    VIEW_CHANNEL,
    READ_MESSAGE_HISTORY,
    SEND_MESSAGES,
    MANAGE_THREADS,
    CREATE_PUBLIC_THREADS,
    MANAGE_MESSAGES,
)


class ChannelKind(str, Enum):
    CATEGORY = "category"
    TEXT = "text"
    FORUM = "forum"
    OTHER = "other"


class TargetKind(str, Enum):
    ROLE = "role"
    MEMBER = "member"


@dataclass(frozen=True)
class Overwrite:
    """Permission overwrite for one role or member on one channel.

    ``target`` is a member/role id, or ``EVERYONE`` for the default role.
    """

    target: str
    kind: TargetKind = TargetKind.MEMBER
    allow: frozenset[str] = frozenset()
    deny: frozenset[str] = frozenset()

    @classmethod
    def everyone(cls, allow=(), deny=()) -> "Overwrite":
        return cls(EVERYONE, TargetKind.ROLE, frozenset(allow), frozenset(deny))

    @classmethod
    def member(cls, member_id: str, allow=(), deny=()) -> "Overwrite":
        return cls(str(member_id), TargetKind.MEMBER, frozenset(allow), frozenset(deny))


@dataclass
class RemoteChannel:
    id: str
    name: str
    kind: ChannelKind
    parent_id: str | None = None
    topic: str | None = None
    created_at: datetime | None = None
    overwrites: list[Overwrite] = field(default_factory=list)


@dataclass
class Member:
    id: str
    username: str
    display_name: str
    global_name: str | None = None
    is_admin: bool = False
    top_role_position: int = 0

    def names(self) -> list[str]:
        return [n for n in (self.username, self.display_name, self.global_name) if n]


class ChannelPlatform(Protocol):
    @property
    def owner_id(self) -> str | None: ...

    async def create_category(self, name: str, overwrites: list[Overwrite]) -> RemoteChannel: ...

    async def create_channel(
        self,
        name: str,
        kind: ChannelKind,
        parent_id: str,
        topic: str | None = None,
        overwrites: list[Overwrite] | None = None,
    ) -> RemoteChannel: ...

    async def edit_member_overwrite(
        self, channel_id: str, member_id: str, changes: dict[str, bool]
    ) -> None: ...

    async def delete_channel(self, channel_id: str, reason: str | None = None) -> None: ...

    async def list_channels(self, parent_id: str | None = None) -> list[RemoteChannel]: ...

    async def list_overwrites(self, channel_id: str) -> list[Overwrite]: ...

    async def list_members(self) -> list[Member]: ...

    async def fetch_member(self, member_id: str) -> Member | None: ...

    async def timeout_member(self, member_id: str, duration: timedelta, reason: str) -> None: ...

    async def bot_member(self) -> Member | None: ...


def member_grant(overwrites: list[Overwrite], permission: str | None = None) -> Overwrite | None:
    """First member-type overwrite that grants ``permission`` (or anything, if None)."""
    for ow in overwrites:
        if ow.kind is not TargetKind.MEMBER:
            continue
        if permission in ow.allow or (permission is None and ow.allow):
            return ow
    return None


def categories_with_suffix(channels: list[RemoteChannel], suffix: str) -> list[RemoteChannel]:
    return [c for c in channels if c.kind is ChannelKind.CATEGORY and c.name.endswith(suffix)]
