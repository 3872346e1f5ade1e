"""Shared data models and types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass
class ChannelRef:
    id: str
    name: str


_RECORD_KEYS = {
    "name": "name",
    "author_id": "authorId",
    "category_id": "categoryId",
    "forum_channel_id": "forumChannelId",
    "working_notes_channel_id": "workingNotesChannelId",
    "created_at": "createdAt",
    "last_modified": "lastModified",
}


@dataclass
class ArchiveRecord:
    """Metadata for one archive: its owner and the channels that make it up.

    Persisted with camelCase keys. Keys the model does not know about are kept
    in ``extra`` so a load/save cycle never drops data.
    """

    name: str
    author_id: str
    category_id: str | None = None
    forum_channel_id: str | None = None
    working_notes_channel_id: str | None = None
    channels: list[ChannelRef] = field(default_factory=list)
    created_at: str | None = None
    last_modified: str | None = None
    enabled: bool = True
    extra: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def key(self) -> str:
        return self.name.lower()

    def matches(self, name: str) -> bool:
        return self.key == name.lower()

    def channel_ids(self) -> list[str]:
        return [c.id for c in self.channels]

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        for attr, key in _RECORD_KEYS.items():
            data[key] = getattr(self, attr)
        data["channels"] = [{"id": c.id, "name": c.name} for c in self.channels]
        data["enabled"] = self.enabled
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ArchiveRecord":
        known = set(_RECORD_KEYS.values()) | {"channels", "enabled"}
        kwargs = {attr: data.get(key) for attr, key in _RECORD_KEYS.items()}
        kwargs["author_id"] = str(data.get("authorId", ""))
        channels = [ChannelRef(id=str(c["id"]), name=c["name"]) for c in data.get("channels") or []]
        return cls(
            **kwargs,
            channels=channels,
            enabled=data.get("enabled", True) is not False,
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass
class ActivityEntry:
    title: str
    category: str
    created_at: str | None


@dataclass
class ArchiveStats:
    total_archives: int = 0
    total_examples: int = 0
    categories_used: list[str] = field(default_factory=list)
    recent_activity: list[ActivityEntry] = field(default_factory=list)
    enabled_archives: int = 0
    disabled_archives: int = 0


@dataclass
class ArchiveInfo:
    record: ArchiveRecord
    records: list[ArchiveRecord]
    stats: ArchiveStats


class Outcome(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


@dataclass
class StepResult:
    """Outcome of one remote call inside a multi-channel operation."""

    target: str
    ok: bool
    error: str | None = None

    def describe(self) -> str:
        return f"{self.target}: {self.error}" if self.error else self.target


@dataclass
class OperationReport:
    archive: str
    action: str
    steps: list[StepResult] = field(default_factory=list)
    record: ArchiveRecord | None = None

    @property
    def errors(self) -> list[str]:
        return [s.describe() for s in self.steps if not s.ok]

    @property
    def outcome(self) -> Outcome:
        failed = sum(1 for s in self.steps if not s.ok)
        if failed == 0:
            return Outcome.SUCCESS
        if failed == len(self.steps):
            return Outcome.FAILURE
        return Outcome.PARTIAL

    def raise_for_outcome(self) -> None:
        from archivist.errors import PartialFailure

        if self.outcome is not Outcome.SUCCESS:
            raise PartialFailure(
                f"{self.action} of '{self.archive}' failed for {len(self.errors)} of "
                f"{len(self.steps)} channels",
                self.errors,
                archive=self.archive,
            )


@dataclass
class DiscoveredArchive:
    """An archive category found on the server during a scan."""

    name: str
    category_id: str
    author_id: str | None = None
    resolved_by: str | None = None
    forum_channel_id: str | None = None
    working_notes_channel_id: str | None = None
    channels: list[ChannelRef] = field(default_factory=list)
    created_at: str | None = None
    enabled: bool = True


@dataclass
class ScanReport:
    categories_found: int = 0
    records_found: int = 0
    new_on_server: list[str] = field(default_factory=list)
    missing_from_server: list[str] = field(default_factory=list)
    discovered: list[DiscoveredArchive] = field(default_factory=list)
    synced: int = 0
    removed: int = 0
    updated: int = 0
    errors: list[str] = field(default_factory=list)
    update_store: bool = False

    @property
    def in_sync(self) -> bool:
        return not self.new_on_server and not self.missing_from_server


@dataclass
class AnalysisReport:
    """Findings for one piece of submitted script source."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    domain_notes: list[str] = field(default_factory=list)
    performance_issues: list[str] = field(default_factory=list)

    def extend(self, other: "AnalysisReport") -> "AnalysisReport":
        for name in ("errors", "warnings", "suggestions", "domain_notes", "performance_issues"):
            mine = getattr(self, name)
            for item in getattr(other, name):
                if item not in mine:
                    mine.append(item)
        return self

    @property
    def is_clean(self) -> bool:
        return not self.errors and not self.warnings

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "suggestions": list(self.suggestions),
            "domainNotes": list(self.domain_notes),
            "performanceIssues": list(self.performance_issues),
        }
