# tests/conftest.py
import asyncio
import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from progress_hub.adapters.base import BackendSnapshot, Document, PersistenceAdapter
from progress_hub.adapters.json_file import JsonFileAdapter
from progress_hub.core.config import Settings
from progress_hub.main import create_app
from progress_hub.schemas.common import CollectionKind
from progress_hub.services.store import AppStore


class InMemoryAdapter(PersistenceAdapter):
    """
    Backend double that keeps documents in a dict.

    Knobs
    -----
    - fail_with: exception raised by the next save_collection calls
    - delay: seconds each save waits before completing
    - numbered: when True, saves return an increasing revision
    """

    name = "memory"

    def __init__(self, initial: Optional[Dict[str, List[Document]]] = None, numbered: bool = False):
        initial = initial or {}
        self.data: Dict[CollectionKind, List[Document]] = {
            kind: copy.deepcopy(initial.get(kind.value, [])) for kind in CollectionKind
        }
        self.saves: List[tuple] = []
        self.fail_with: Optional[Exception] = None
        self.delay = 0.0
        self.numbered = numbered
        self.revision = 0
        self.closed = False

    async def load_all(self) -> BackendSnapshot:
        return BackendSnapshot(
            collections=copy.deepcopy(self.data),
            revision=self.revision if self.numbered else None,
        )

    async def save_collection(self, kind: CollectionKind, items: List[Document]) -> Optional[int]:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        self.data[kind] = copy.deepcopy(items)
        self.saves.append((kind, copy.deepcopy(items)))
        self.revision += 1
        return self.revision if self.numbered else None

    def snapshot(self) -> BackendSnapshot:
        return BackendSnapshot(
            collections=copy.deepcopy(self.data),
            revision=self.revision if self.numbered else None,
        )

    async def close(self) -> None:
        self.closed = True


class FixedClock:
    """
    Deterministic clock; every call advances by one second.
    """

    def __init__(self, start: datetime = datetime(2025, 11, 10, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current

    def advance(self, **kwargs: Any) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def adapter() -> InMemoryAdapter:
    return InMemoryAdapter()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store(adapter: InMemoryAdapter, clock: FixedClock) -> AppStore:
    """
    Store over the in-memory adapter. Tests call `await store.load()` first,
    just like the application does on startup.
    """
    return AppStore(adapter, clock=clock)


def staff_draft(**overrides: Any) -> Dict[str, Any]:
    draft = {
        "name": "Hanako Sato",
        "currentClient": "Acme Corp",
        "assignmentPeriod": {"start": "2025-04-01T00:00:00Z", "end": None},
        "contact": {"email": "hanako@example.com", "phone": "090-1234-5678"},
    }
    draft.update(overrides)
    return draft


def task_draft(**overrides: Any) -> Dict[str, Any]:
    draft = {
        "taskName": "Migrate billing batch",
        "projectName": "Billing renewal",
        "clientName": "Acme Corp",
        "staffId": "",
        "deadline": "2025-12-20T00:00:00Z",
        "completionRate": 40,
        "status": "in_progress",
        "technologies": ["Python"],
    }
    draft.update(overrides)
    return draft


def meeting_draft(**overrides: Any) -> Dict[str, Any]:
    draft = {
        "date": "2025-11-10T10:00:00Z",
        "title": "Monthly sync",
        "clientName": "Acme Corp",
        "staffIds": ["staff-1", "staff-2"],
        "decisions": [],
        "nextMeetingDate": "2025-12-10T10:00:00Z",
    }
    draft.update(overrides)
    return draft


@pytest.fixture
def client(tmp_path) -> TestClient:
    """
    TestClient over a fresh app whose store writes JSON files into tmp_path.
    """
    settings = Settings(APP_ENV="test", STORAGE_BACKEND="json_file", DATA_DIR=str(tmp_path))
    app = create_app(settings=settings, adapter=JsonFileAdapter(tmp_path))
    with TestClient(app) as test_client:
        yield test_client
