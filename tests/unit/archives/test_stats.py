from archivist.archives.api import stats
from archivist.models import ArchiveRecord, ChannelRef


def record(name, created_at, channels=(), enabled=True):
    return ArchiveRecord(
        name=name,
        author_id="1",
        channels=[ChannelRef(id=str(i), name=c) for i, c in enumerate(channels)],
        created_at=created_at,
        enabled=enabled,
    )


def test_categories_used_keeps_first_seen_prefixes():
    records = [
        record("a", None, ["block-examples", "item-projects", "block-projects"]),
        record("b", None, ["sound_effects", "javascript-functional", "item-examples"]),
    ]

    assert stats.categories_used(records) == ["block", "item", "javascript"]


def test_compute_counts_and_recent_activity():
    records = [
        record(f"A{i}", f"2024-01-0{i}T00:00:00+00:00", ["misc-examples"], enabled=i % 2 == 0)
        for i in range(1, 8)
    ]
    records.append(record("Undated", None))

    result = stats.compute(records, "'s Archive")

    assert result.total_archives == 8
    assert result.total_examples == 7
    assert result.categories_used == ["misc"]
    assert [a.title for a in result.recent_activity] == [
        "A7's Archive",
        "A6's Archive",
        "A5's Archive",
        "A4's Archive",
        "A3's Archive",
    ]
    assert all(a.category == "archive" for a in result.recent_activity)
    assert result.enabled_archives == 4
    assert result.disabled_archives == 4


def test_compute_handles_naive_and_bad_timestamps():
    records = [
        record("Naive", "2024-05-01T12:00:00"),
        record("Aware", "2024-04-01T12:00:00+00:00"),
        record("Bad", "not a date"),
    ]

    result = stats.compute(records, "'s Archive")

    assert [a.title for a in result.recent_activity] == [
        "Naive's Archive",
        "Aware's Archive",
        "Bad's Archive",
    ]


def test_compute_empty():
    result = stats.compute([], "'s Archive")

    assert result.total_archives == 0
    assert result.recent_activity == []
