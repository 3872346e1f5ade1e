"""Reconcile archive categories on the server with the record store.

Read-only unless ``update_store`` is set. Running it twice with ``update_store``
and no server changes in between yields no differences the second time.
"""

import logging

from archivist import config
from archivist.archives import catalog
from archivist.archives.api import records
from archivist.errors import PlatformError, ReconciliationAmbiguous
from archivist.lib.store import RecordStore
from archivist.models import ArchiveRecord, ChannelRef, DiscoveredArchive, ScanReport
from archivist.platform.base import (
    SEND_MESSAGES,
    ChannelKind,
    ChannelPlatform,
    Member,
    RemoteChannel,
    categories_with_suffix,
    member_grant,
)

logger = logging.getLogger(__name__)

NOTES_GRANT = "notes-overwrite"
TOPIC_GRANT = "topic-overwrite"
NAME_MATCH = "member-name"
STORED = "record"


class _Members:
    """Guild member list, fetched at most once per scan."""

    def __init__(self, platform: ChannelPlatform):
        self.platform = platform
        self._members: list[Member] | None = None

    async def matching(self, name: str) -> list[Member]:
        if self._members is None:
            self._members = await self.platform.list_members()
        wanted = name.lower()
        return [m for m in self._members if wanted in (n.lower() for n in m.names())]


def classify(name: str, category: RemoteChannel, children: list[RemoteChannel]) -> DiscoveredArchive:
    """Sort a category's children into the open forum, the notes channel and topic channels."""
    found = DiscoveredArchive(
        name=name,
        category_id=category.id,
        created_at=category.created_at.isoformat() if category.created_at else None,
    )
    for child in children:
        if child.name == catalog.NOTES_CHANNEL:
            found.working_notes_channel_id = child.id
        elif child.name == catalog.FORUM_CHANNEL and child.kind is ChannelKind.TEXT:
            found.forum_channel_id = child.id
        elif child.kind is ChannelKind.FORUM:
            found.channels.append(ChannelRef(id=child.id, name=child.name))
    return found


async def resolve_author(
    platform: ChannelPlatform, found: DiscoveredArchive, members: _Members
) -> DiscoveredArchive:
    """Work out who owns ``found``.

    Tried in order: a member grant on the notes channel, a member send grant on a
    topic channel, then a case-insensitive match of the archive name against
    member usernames, display names and global names.

    Raises:
        ReconciliationAmbiguous: no method produced an owner.
    """
    if found.working_notes_channel_id:
        grant = member_grant(await platform.list_overwrites(found.working_notes_channel_id))
        if grant:
            found.author_id, found.resolved_by = grant.target, NOTES_GRANT

    sample = found.channels[0] if found.channels else None
    sample_overwrites = None
    if found.author_id is None and sample:
        sample_overwrites = await platform.list_overwrites(sample.id)
        grant = member_grant(sample_overwrites, SEND_MESSAGES)
        if grant:
            found.author_id, found.resolved_by = grant.target, TOPIC_GRANT

    if found.author_id is None:
        candidates = await members.matching(found.name)
        if len(candidates) > 1:
            logger.warning(
                f"{len(candidates)} members match archive '{found.name}'; using {candidates[0].id}"
            )
        if candidates:
            found.author_id, found.resolved_by = candidates[0].id, NAME_MATCH

    if found.author_id is None:
        raise ReconciliationAmbiguous(
            f"Could not find owner for archive '{found.name}'", archive=found.name
        )

    if sample_overwrites is None and sample:
        try:
            sample_overwrites = await platform.list_overwrites(sample.id)
        except PlatformError as e:
            logger.warning(f"Could not read overwrites of {sample.name} in '{found.name}': {e}")
    for ow in sample_overwrites or ():
        if ow.target == found.author_id and SEND_MESSAGES in ow.deny:
            found.enabled = False
    return found


def to_record(found: DiscoveredArchive) -> ArchiveRecord:
    return ArchiveRecord(
        name=found.name,
        author_id=found.author_id or "",
        category_id=found.category_id,
        forum_channel_id=found.forum_channel_id,
        working_notes_channel_id=found.working_notes_channel_id,
        channels=list(found.channels),
        created_at=found.created_at or records.now(),
        enabled=found.enabled,
    )


async def scan(
    store: RecordStore,
    platform: ChannelPlatform,
    update_store: bool = False,
    suffix: str | None = None,
) -> ScanReport:
    suffix = suffix or config.category_suffix()
    channels = await platform.list_channels()
    categories = categories_with_suffix(channels, suffix)
    stored = await records.list_archives(store)

    report = ScanReport(
        categories_found=len(categories), records_found=len(stored), update_store=update_store
    )
    members = _Members(platform)

    known = {r.key: r for r in stored}
    server: set[str] = set()
    resolved: dict[str, DiscoveredArchive] = {}
    for category in categories:
        name = catalog.archive_name_from_category(category.name, suffix)
        if name is None:
            continue
        if name.lower() in server:
            logger.warning(f"Skipping duplicate archive category '{category.name}'")
            report.errors.append(f"Duplicate archive category '{category.name}' skipped")
            continue
        server.add(name.lower())

        children = [c for c in channels if c.parent_id == category.id]
        found = classify(name, category, children)
        record = known.get(name.lower())
        if record is not None:
            found.author_id, found.resolved_by = record.author_id, STORED
            found.enabled = record.enabled
        else:
            try:
                await resolve_author(platform, found, members)
            except ReconciliationAmbiguous as e:
                logger.warning(str(e))
                report.errors.append(str(e))
                continue
            except PlatformError as e:
                logger.warning(f"Failed to scan archive '{name}': {e}")
                report.errors.append(f"Failed to scan archive '{name}': {e}")
                continue
        report.discovered.append(found)
        resolved[name.lower()] = found

    report.new_on_server = [f.name for key, f in resolved.items() if key not in known]
    report.missing_from_server = [r.name for key, r in known.items() if key not in server]

    if not update_store:
        return report

    for name in report.new_on_server:
        found = resolved.get(name.lower())
        if found is None:
            continue
        await records.save_archive(store, to_record(found))
        report.synced += 1

    for name in report.missing_from_server:
        await records.delete_archive(store, name)
        report.removed += 1

    for record in stored:
        found = resolved.get(record.key)
        if found is None or record.key not in server:
            continue
        if sorted(record.channel_ids()) != sorted(c.id for c in found.channels):
            await records.update_channels(store, record.name, found.channels)
            report.updated += 1

    logger.info(
        f"Scan sync: added {report.synced}, removed {report.removed}, updated {report.updated}"
    )
    return report
