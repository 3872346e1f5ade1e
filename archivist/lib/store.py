"""Record store - whole-collection load/save of archive records.

Every higher-level operation is load-all, mutate in memory, save-all. There is
no locking: overlapping load/save cycles resolve as last writer wins.
"""

import asyncio
import copy
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from archivist.models import ArchiveRecord

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    async def load_all(self) -> list[ArchiveRecord]: ...

    async def save_all(self, records: Iterable[ArchiveRecord]) -> None: ...


def dumps(records: Iterable[ArchiveRecord]) -> str:
    return json.dumps([r.to_dict() for r in records], indent=2)


def loads(text: str) -> list[ArchiveRecord]:
    data = json.loads(text) if text.strip() else []
    if not isinstance(data, list):
        raise ValueError(f"Archive document must be a list, got {type(data).__name__}")
    return [ArchiveRecord.from_dict(item) for item in data]


class JsonRecordStore:
    """Archive records kept in a single JSON document, rewritten on every save."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"JsonRecordStore({str(self.path)!r})"

    def _read(self) -> list[ArchiveRecord]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        return loads(text)

    def _write(self, records: list[ArchiveRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(dumps(records))
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug(f"Saved {len(records)} archive records to {self.path}")

    async def load_all(self) -> list[ArchiveRecord]:
        return await asyncio.to_thread(self._read)

    async def save_all(self, records: Iterable[ArchiveRecord]) -> None:
        await asyncio.to_thread(self._write, list(records))


class MemoryRecordStore:
    """In-process store with the same whole-collection semantics."""

    def __init__(self, records: Iterable[ArchiveRecord] = ()):
        self._records = copy.deepcopy(list(records))
        self.saves = 0

    async def load_all(self) -> list[ArchiveRecord]:
        return copy.deepcopy(self._records)

    async def save_all(self, records: Iterable[ArchiveRecord]) -> None:
        self._records = copy.deepcopy(list(records))
        self.saves += 1


def default_store() -> JsonRecordStore:
    from archivist import config

    return JsonRecordStore(config.records_file())
