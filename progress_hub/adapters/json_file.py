# progress_hub/adapters/json_file.py
from __future__ import annotations

import asyncio
import errno
import json
import logging
from pathlib import Path
from typing import List, Optional

from progress_hub.adapters.base import BackendSnapshot, Document, PersistenceAdapter
from progress_hub.core.errors import PersistenceError, QuotaExceededError
from progress_hub.schemas.common import CollectionKind

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    CollectionKind.STAFF: "progress_management_staff",
    CollectionKind.TASKS: "progress_management_tasks",
    CollectionKind.MEETINGS: "progress_management_meetings",
    CollectionKind.REPORTS: "progress_management_reports",
    CollectionKind.SHIFTS: "progress_management_shifts",
}

_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class JsonFileAdapter(PersistenceAdapter):
    """
    Local file persistence: one pretty-printed JSON array per collection.

    Writes go to a temporary file that then replaces the target, so a reader
    never sees a half-written collection. An optional byte budget mimics the
    storage limit of browser local storage; a write that would push the total
    over it is rejected with `QuotaExceededError` before touching disk.
    """

    name = "json_file"

    def __init__(self, data_dir: Path | str, max_bytes: Optional[int] = 5 * 1024 * 1024) -> None:
        self.data_dir = Path(data_dir)
        self.max_bytes = max_bytes

    def path_for(self, kind: CollectionKind) -> Path:
        return self.data_dir / f"{STORAGE_KEYS[kind]}.json"

    async def load_all(self) -> BackendSnapshot:
        return await asyncio.to_thread(self._read_all)

    async def save_collection(self, kind: CollectionKind, items: List[Document]) -> Optional[int]:
        await asyncio.to_thread(self._write, kind, items)
        return None

    def total_bytes(self, exclude: CollectionKind | None = None) -> int:
        total = 0
        for kind in CollectionKind:
            if kind == exclude:
                continue
            path = self.path_for(kind)
            if path.exists():
                total += path.stat().st_size
        return total

    def _read_all(self) -> BackendSnapshot:
        data = {}
        for kind in CollectionKind:
            data[kind.value] = self._read(kind)
        return BackendSnapshot.from_mapping(data)

    def _read(self, kind: CollectionKind) -> List[Document]:
        path = self.path_for(kind)
        if not path.exists():
            return []
        try:
            items = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Failed to read {kind.value} from {path}: {exc}") from exc

        if items is None:
            return []
        if not isinstance(items, list):
            raise PersistenceError(f"{path} does not contain a JSON array")
        return items

    def _write(self, kind: CollectionKind, items: List[Document]) -> None:
        encoded = json.dumps(items, ensure_ascii=False, indent=2).encode("utf-8")

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            if self.max_bytes is not None:
                projected = self.total_bytes(exclude=kind) + len(encoded)
                if projected > self.max_bytes:
                    raise QuotaExceededError(
                        f"Local storage limit reached: writing {kind.value} needs "
                        f"{projected} bytes, limit is {self.max_bytes}."
                    )

            path = self.path_for(kind)
            tmp = path.with_suffix(".tmp")
            tmp.write_bytes(encoded)
            tmp.replace(path)
        except OSError as exc:
            if exc.errno in _QUOTA_ERRNOS:
                raise QuotaExceededError(f"Disk quota exhausted while writing {kind.value}: {exc}") from exc
            raise PersistenceError(f"Failed to write {kind.value}: {exc}") from exc

        logger.debug("Wrote %d %s item(s) to %s", len(items), kind.value, self.data_dir)
