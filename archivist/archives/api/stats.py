import re
from datetime import UTC, datetime

from archivist.models import ActivityEntry, ArchiveRecord, ArchiveStats

RECENT_LIMIT = 5

_CATEGORY_PREFIX = re.compile(r"^(\w+)-")


def _created(record: ArchiveRecord) -> datetime:
    if not record.created_at:
        return datetime.min.replace(tzinfo=UTC)
    try:
        parsed = datetime.fromisoformat(record.created_at)
    except ValueError:
        return datetime.min.replace(tzinfo=UTC)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def categories_used(records: list[ArchiveRecord]) -> list[str]:
    """Distinct leading ``word-`` prefixes of channel names, in first-seen order."""
    seen: list[str] = []
    for record in records:
        for channel in record.channels:
            match = _CATEGORY_PREFIX.match(channel.name)
            if match and match.group(1) not in seen:
                seen.append(match.group(1))
    return seen


def compute(records: list[ArchiveRecord], suffix: str) -> ArchiveStats:
    recent = sorted(records, key=_created, reverse=True)[:RECENT_LIMIT]
    return ArchiveStats(
        total_archives=len(records),
        total_examples=sum(len(r.channels) for r in records),
        categories_used=categories_used(records),
        recent_activity=[
            ActivityEntry(title=f"{r.name}{suffix}", category="archive", created_at=r.created_at)
            for r in recent
        ],
        enabled_archives=sum(1 for r in records if r.enabled),
        disabled_archives=sum(1 for r in records if not r.enabled),
    )
