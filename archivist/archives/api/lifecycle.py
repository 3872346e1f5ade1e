"""Archive lifecycle: create, delete, enable/disable, info.

States per archive name: absent -> (create) -> active(enabled) <-> active(disabled)
-> (delete) -> absent. Drift between the server and the record store is repaired
by ``scan``.
"""

import asyncio
import logging

from archivist import config
from archivist.archives import catalog
from archivist.archives.api import records, stats
from archivist.errors import (
    AlreadyExists,
    ConfirmationRequired,
    NotFound,
    PlatformError,
)
from archivist.lib.store import RecordStore
from archivist.models import (
    ArchiveInfo,
    ArchiveRecord,
    ChannelRef,
    OperationReport,
    StepResult,
)
from archivist.platform.base import ChannelKind, ChannelPlatform, Member

logger = logging.getLogger(__name__)

DELETE_REASON = "Archive deletion requested by user."


async def create(
    store: RecordStore,
    platform: ChannelPlatform,
    author: Member,
    name: str | None = None,
    suffix: str | None = None,
) -> ArchiveRecord:
    """Create the archive channels for ``author`` and persist the record.

    Channels are created one at a time, category first, since everything else is
    parented to it. A failure part-way leaves the channels created so far in place
    and nothing is persisted.

    Raises:
        AlreadyExists: a record with this name exists (nothing is touched).
        PermissionDenied: the platform refused a creation for lack of permissions.
        PlatformError: any other platform failure.
    """
    archive_name = (name or author.display_name).strip()
    if not archive_name:
        raise ValueError("Archive name is required")
    suffix = suffix or config.category_suffix()

    existing = await records.get_archive(store, archive_name)
    if existing is not None:
        raise AlreadyExists(
            f"An archive named '{existing.name}' already exists", archive=existing.name
        )

    created: list[str] = []
    try:
        category = await platform.create_category(
            catalog.category_name(archive_name, suffix), catalog.category_overwrites()
        )
        created.append(category.id)

        forum = await platform.create_channel(
            catalog.FORUM_CHANNEL,
            ChannelKind.TEXT,
            category.id,
            topic=catalog.forum_topic(archive_name, suffix),
        )
        created.append(forum.id)

        topics: list[ChannelRef] = []
        for topic in catalog.TOPIC_CHANNELS:
            channel = await platform.create_channel(
                topic.name,
                ChannelKind.FORUM,
                category.id,
                topic=topic.description,
                overwrites=catalog.topic_overwrites(author.id),
            )
            created.append(channel.id)
            topics.append(ChannelRef(id=channel.id, name=channel.name))

        notes = await platform.create_channel(
            catalog.NOTES_CHANNEL,
            ChannelKind.FORUM,
            category.id,
            topic=catalog.notes_topic(archive_name, suffix),
            overwrites=catalog.notes_overwrites(author.id),
        )
        created.append(notes.id)
    except PlatformError as e:
        logger.error(
            f"Creating archive '{archive_name}' failed after {len(created)} channels: {e}"
        )
        e.archive = archive_name
        raise

    record = ArchiveRecord(
        name=archive_name,
        author_id=author.id,
        category_id=category.id,
        forum_channel_id=forum.id,
        working_notes_channel_id=notes.id,
        channels=topics,
        created_at=records.now(),
        enabled=True,
    )
    await records.save_archive(store, record)
    logger.info(f"Created archive '{archive_name}' for {author.id} ({len(created)} channels)")
    return record


async def _require(store: RecordStore, name: str) -> ArchiveRecord:
    record = await records.get_archive(store, name)
    if record is None:
        raise NotFound(f"No archive named '{name}'", archive=name)
    return record


async def _delete_one(platform: ChannelPlatform, channel_id: str, label: str) -> StepResult:
    try:
        await platform.delete_channel(channel_id, reason=DELETE_REASON)
    except PlatformError as e:
        logger.warning(f"Deletion error for {label}: {e}")
        return StepResult(target=label, ok=False, error=str(e))
    return StepResult(target=label, ok=True)


async def delete(
    store: RecordStore, platform: ChannelPlatform, name: str, confirm: bool = False
) -> OperationReport:
    """Delete every channel under the archive's category, the category, then the record.

    Per-channel failures are collected in the report rather than raised; the
    record is removed regardless.
    """
    record = await _require(store, name)
    if not confirm:
        raise ConfirmationRequired(
            f"Deleting '{record.name}' requires explicit confirmation", archive=record.name
        )

    report = OperationReport(archive=record.name, action="delete", record=record)
    if record.category_id:
        categories = await platform.list_channels()
        category = next((c for c in categories if c.id == record.category_id), None)
        if category is None:
            logger.warning(f"Category for '{record.name}' is gone; removing record only")
        else:
            children = [c for c in categories if c.parent_id == category.id]
            report.steps.extend(
                await asyncio.gather(
                    *(_delete_one(platform, c.id, f"#{c.name}") for c in children)
                )
            )
            report.steps.append(await _delete_one(platform, category.id, category.name))

    await records.delete_archive(store, record.name)
    logger.info(f"Deleted archive '{record.name}' ({report.outcome.value})")
    return report


async def set_enabled(
    store: RecordStore, platform: ChannelPlatform, name: str, enabled: bool
) -> OperationReport:
    """Grant or revoke the author's posting rights on every topic channel.

    The record's ``enabled`` flag is updated even when some channels failed.
    """
    record = await _require(store, name)
    changes = {perm: enabled for perm in catalog.POSTING}
    action = "enable" if enabled else "disable"
    report = OperationReport(archive=record.name, action=action)

    for channel in record.channels:
        try:
            await platform.edit_member_overwrite(channel.id, record.author_id, changes)
        except PlatformError as e:
            logger.warning(f"Could not {action} #{channel.name} for '{record.name}': {e}")
            report.steps.append(StepResult(target=f"#{channel.name}", ok=False, error=str(e)))
        else:
            report.steps.append(StepResult(target=f"#{channel.name}", ok=True))

    report.record = await records.update_status(store, record.name, enabled)
    return report


async def get_info(
    store: RecordStore,
    author_id: str | None = None,
    name: str | None = None,
    suffix: str | None = None,
) -> ArchiveInfo:
    """Look up an archive by name, or an author's archives, with statistics.

    With ``name`` the matching record is returned (NotFound if absent) along with
    all archives of its author. With only ``author_id`` the author's first archive
    is the primary record.
    """
    if name is None and author_id is None:
        raise ValueError("Either an author id or an archive name is required")
    suffix = suffix or config.category_suffix()

    if name is not None:
        record = await _require(store, name)
        if author_id is not None and record.author_id != str(author_id):
            raise NotFound(f"No archive named '{name}' for author {author_id}", archive=name)
        owned = await records.list_by_author(store, record.author_id)
    else:
        owned = await records.list_by_author(store, str(author_id))
        if not owned:
            raise NotFound(f"Author {author_id} does not have an archive")
        record = owned[0]

    return ArchiveInfo(record=record, records=owned, stats=stats.compute(owned, suffix))
