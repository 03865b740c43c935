# tests/test_database_adapter.py
import pytest

from conftest import FixedClock, task_draft
from progress_hub.adapters.database import DatabaseAdapter
from progress_hub.db.base import Base
from progress_hub.db.session import build_engine
from progress_hub.schemas.common import CollectionKind
from progress_hub.services.store import AppStore


def _adapter(tmp_path, **kwargs) -> DatabaseAdapter:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'progress_hub.db'}")
    return DatabaseAdapter(engine, **kwargs)


@pytest.mark.asyncio
async def test_first_use_creates_empty_document_row(tmp_path):
    adapter = _adapter(tmp_path)
    try:
        snapshot = await adapter.load_all()
    finally:
        await adapter.close()

    assert snapshot.revision == 0
    for kind in CollectionKind:
        assert snapshot.get(kind) == []


@pytest.mark.asyncio
async def test_each_save_bumps_revision(tmp_path):
    adapter = _adapter(tmp_path)
    try:
        first = await adapter.save_collection(CollectionKind.TASKS, [{"id": "t-1"}])
        second = await adapter.save_collection(CollectionKind.STAFF, [{"id": "s-1"}])
        snapshot = await adapter.load_all()
    finally:
        await adapter.close()

    assert (first, second) == (1, 2)
    assert snapshot.revision == 2
    assert snapshot.get(CollectionKind.TASKS) == [{"id": "t-1"}]
    assert snapshot.get(CollectionKind.STAFF) == [{"id": "s-1"}]


@pytest.mark.asyncio
async def test_poll_delivers_only_when_revision_moves(tmp_path):
    adapter = _adapter(tmp_path)
    delivered = []
    adapter._listeners.append(delivered.append)
    try:
        assert await adapter.poll_once() is True
        assert await adapter.poll_once() is False

        await adapter.save_collection(CollectionKind.MEETINGS, [])
        assert await adapter.poll_once() is True
    finally:
        await adapter.close()

    assert [snapshot.revision for snapshot in delivered] == [0, 1]


@pytest.mark.asyncio
async def test_store_ignores_echo_and_applies_writes_from_other_processes(tmp_path):
    ours = _adapter(tmp_path, poll_interval=60)
    theirs = _adapter(tmp_path)
    store = AppStore(ours, clock=FixedClock())
    try:
        await store.start()
        task = await store.tasks.add(task_draft())
        version = store.versions()["tasks"]

        # own write echoed back: nothing changes
        await ours.poll_once()
        assert store.versions()["tasks"] == version
        assert [t.id for t in store.tasks.all()] == [task.id]

        # another process renames the task
        documents = (await theirs.load_all()).get(CollectionKind.TASKS)
        documents[0]["taskName"] = "Renamed elsewhere"
        await theirs.save_collection(CollectionKind.TASKS, documents)

        await ours.poll_once()
        assert store.tasks.get(task.id).task_name == "Renamed elsewhere"
        assert store.status.backend_revision == 2
    finally:
        await store.stop()
        await theirs.close()


@pytest.mark.asyncio
async def test_failed_subscription_poll_is_reported_in_store_status(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'progress_hub.db'}")
    ours = DatabaseAdapter(engine, poll_interval=60)
    store = AppStore(ours, clock=FixedClock())
    try:
        await store.start()
        assert store.status.last_error is None

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

        assert await ours.poll_and_report() is False
        assert store.status.last_error is not None
        assert store.status.last_error.code == "PERSISTENCE_ERROR"
        assert store.status_view().last_error_code == "PERSISTENCE_ERROR"
    finally:
        await store.stop()
