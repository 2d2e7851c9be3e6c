import pytest

from studioflow.db import SQLModelStorage
from studioflow.errors import NotFoundError
from studioflow.persistence import InMemoryStorage, SQLiteStorage


@pytest.fixture(params=["memory", "sqlite", "sqlmodel"])
def storage(request, tmp_path):
    if request.param == "memory":
        return InMemoryStorage()
    if request.param == "sqlite":
        return SQLiteStorage(tmp_path / "records.db")
    return SQLModelStorage(f"sqlite+aiosqlite:///{tmp_path / 'records-orm.db'}")


@pytest.mark.asyncio
async def test_storage_crud(storage):
    item_id = await storage.create({"kind": "progression", "currentStep": 1, "step1Data": {"a": 1}})
    assert await storage.get(item_id) == {
        "kind": "progression",
        "currentStep": 1,
        "step1Data": {"a": 1},
    }

    await storage.update(item_id, {"currentStep": 2, "completedSteps": ["script"]})
    record = await storage.get(item_id)
    assert record["currentStep"] == 2
    assert record["completedSteps"] == ["script"]
    assert record["step1Data"] == {"a": 1}

    await storage.delete(item_id)
    assert await storage.get(item_id) is None


@pytest.mark.asyncio
async def test_storage_missing_records(storage):
    assert await storage.get("missing") is None
    with pytest.raises(NotFoundError):
        await storage.update("missing", {"currentStep": 1})
    with pytest.raises(NotFoundError):
        await storage.delete("missing")


@pytest.mark.asyncio
async def test_storage_lists_by_kind(storage):
    first = await storage.create({"kind": "progression"})
    second = await storage.create({"kind": "campaign"})
    third = await storage.create({"kind": "progression"})

    assert set(await storage.list_ids()) == {first, second, third}
    assert set(await storage.list_ids("progression")) == {first, third}
    assert await storage.list_ids("campaign") == [second]


@pytest.mark.asyncio
async def test_sqlite_storage_survives_reopen(tmp_path):
    path = tmp_path / "records.db"
    item_id = await SQLiteStorage(path).create({"kind": "campaign", "name": "Calm"})

    reopened = SQLiteStorage(path)
    assert (await reopened.get(item_id))["name"] == "Calm"


@pytest.mark.asyncio
async def test_memory_storage_returns_copies():
    storage = InMemoryStorage()
    item_id = await storage.create({"items": [1]})
    record = await storage.get(item_id)
    record["items"].append(2)
    assert (await storage.get(item_id))["items"] == [1]
