# tests/test_json_file_adapter.py
import json

import pytest

from progress_hub.adapters.json_file import JsonFileAdapter
from progress_hub.core.errors import PersistenceError, QuotaExceededError
from progress_hub.schemas.common import CollectionKind


@pytest.mark.asyncio
async def test_missing_files_load_as_empty_collections(tmp_path):
    adapter = JsonFileAdapter(tmp_path / "data")

    snapshot = await adapter.load_all()

    for kind in CollectionKind:
        assert snapshot.get(kind) == []
    assert snapshot.revision is None


@pytest.mark.asyncio
async def test_save_writes_one_file_per_collection(tmp_path):
    adapter = JsonFileAdapter(tmp_path)
    items = [{"id": "t-1", "taskName": "Write docs"}]

    revision = await adapter.save_collection(CollectionKind.TASKS, items)

    assert revision is None
    path = tmp_path / "progress_management_tasks.json"
    assert json.loads(path.read_text(encoding="utf-8")) == items
    assert not path.with_suffix(".tmp").exists()

    snapshot = await adapter.load_all()
    assert snapshot.get(CollectionKind.TASKS) == items
    assert snapshot.get(CollectionKind.STAFF) == []


@pytest.mark.asyncio
async def test_write_over_limit_raises_quota_and_keeps_old_file(tmp_path):
    adapter = JsonFileAdapter(tmp_path, max_bytes=200)
    await adapter.save_collection(CollectionKind.STAFF, [{"id": "s-1"}])

    with pytest.raises(QuotaExceededError):
        await adapter.save_collection(CollectionKind.TASKS, [{"id": str(i), "notes": "x" * 50} for i in range(10)])

    assert not adapter.path_for(CollectionKind.TASKS).exists()
    assert (await adapter.load_all()).get(CollectionKind.STAFF) == [{"id": "s-1"}]


@pytest.mark.asyncio
async def test_rewriting_a_collection_does_not_count_its_old_size(tmp_path):
    adapter = JsonFileAdapter(tmp_path, max_bytes=300)
    payload = [{"id": "t-1", "notes": "y" * 150}]

    await adapter.save_collection(CollectionKind.TASKS, payload)
    await adapter.save_collection(CollectionKind.TASKS, payload)

    assert adapter.total_bytes() < 300


@pytest.mark.asyncio
async def test_corrupt_file_raises_persistence_error(tmp_path):
    adapter = JsonFileAdapter(tmp_path)
    adapter.path_for(CollectionKind.MEETINGS).write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        await adapter.load_all()


@pytest.mark.asyncio
async def test_non_array_file_raises_persistence_error(tmp_path):
    adapter = JsonFileAdapter(tmp_path)
    adapter.path_for(CollectionKind.REPORTS).write_text('{"reports": []}', encoding="utf-8")

    with pytest.raises(PersistenceError):
        await adapter.load_all()
