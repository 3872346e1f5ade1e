"""Channel platform: the contract the archive engine drives and its Discord implementation."""

from .base import (
    EVERYONE,
    ChannelKind,
    ChannelPlatform,
    Member,
    Overwrite,
    RemoteChannel,
    TargetKind,
)

__all__ = [
    "EVERYONE",
    "ChannelKind",
    "ChannelPlatform",
    "Member",
    "Overwrite",
    "RemoteChannel",
    "TargetKind",
]
