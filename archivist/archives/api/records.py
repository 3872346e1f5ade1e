"""Record operations: save, get, list, delete, status, channels, search.

Each call is one load-all / mutate / save-all cycle on the store. Names match
case-insensitively.
"""

from datetime import UTC, datetime

from archivist.lib.store import RecordStore
from archivist.models import ArchiveRecord, ChannelRef


def now() -> str:
    return datetime.now(UTC).isoformat()


def _index(records: list[ArchiveRecord], name: str) -> int | None:
    for i, record in enumerate(records):
        if record.matches(name):
            return i
    return None


async def save_archive(store: RecordStore, record: ArchiveRecord) -> ArchiveRecord:
    """Insert ``record``, or replace the stored one with the same name."""
    records = await store.load_all()
    idx = _index(records, record.name)
    if idx is None:
        records.append(record)
    else:
        previous = records[idx]
        record.extra = {**previous.extra, **record.extra}
        if record.created_at is None:
            record.created_at = previous.created_at
        records[idx] = record
    await store.save_all(records)
    return record


async def get_archive(store: RecordStore, name: str) -> ArchiveRecord | None:
    records = await store.load_all()
    idx = _index(records, name)
    return records[idx] if idx is not None else None


async def list_archives(store: RecordStore) -> list[ArchiveRecord]:
    return await store.load_all()


async def list_by_author(store: RecordStore, author_id: str) -> list[ArchiveRecord]:
    return [r for r in await store.load_all() if r.author_id == str(author_id)]


async def delete_archive(store: RecordStore, name: str) -> bool:
    """Remove the named record. Returns True if one was removed."""
    records = await store.load_all()
    kept = [r for r in records if not r.matches(name)]
    await store.save_all(kept)
    return len(kept) != len(records)


async def update_status(store: RecordStore, name: str, enabled: bool) -> ArchiveRecord | None:
    records = await store.load_all()
    idx = _index(records, name)
    if idx is None:
        return None
    records[idx].enabled = enabled
    records[idx].last_modified = now()
    await store.save_all(records)
    return records[idx]


async def update_channels(
    store: RecordStore, name: str, channels: list[ChannelRef]
) -> ArchiveRecord | None:
    records = await store.load_all()
    idx = _index(records, name)
    if idx is None:
        return None
    records[idx].channels = list(channels)
    records[idx].last_modified = now()
    await store.save_all(records)
    return records[idx]


async def search_archives(store: RecordStore, query: str) -> list[ArchiveRecord]:
    q = query.lower()
    return [
        r
        for r in await store.load_all()
        if q in r.name.lower() or any(q in c.name.lower() for c in r.channels)
    ]


async def find_by_channel_id(store: RecordStore, channel_id: str) -> ArchiveRecord | None:
    channel_id = str(channel_id)
    for r in await store.load_all():
        if channel_id in (r.category_id, r.forum_channel_id, r.working_notes_channel_id):
            return r
        if channel_id in r.channel_ids():
            return r
    return None
