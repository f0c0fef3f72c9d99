from types import SimpleNamespace

import pytest

from paynews.settings import Settings
from paynews.store.records import MemoryRecordStore, SupabaseRecordStore


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.steps = []

    def __getattr__(self, name):
        def step(*args, **kwargs):
            self.steps.append((name, args, kwargs))
            return self

        return step

    def execute(self):
        self.client.executed.append((self.table, self.steps))
        if self.client.fail:
            raise RuntimeError("connection refused")
        return SimpleNamespace(data=self.client.data)


class FakeClient:
    def __init__(self, data=None, fail=False):
        self.data = data if data is not None else []
        self.fail = fail
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)


def test_missing_supabase_settings():
    with pytest.raises(RuntimeError, match="SUPABASE_URL: missing"):
        SupabaseRecordStore(Settings())


def test_select_orders_newest_first():
    client = FakeClient(data=[{"id": "1"}])
    store = SupabaseRecordStore(Settings(table="payarticles"), client=client)

    assert store.select_all() == [{"id": "1"}]
    table, steps = client.executed[0]
    assert table == "payarticles"
    assert ("order", ("created_at",), {"desc": True}) in steps


def test_insert_returns_first_row_and_requires_one():
    client = FakeClient(data=[{"id": "new", "title": "T"}])
    store = SupabaseRecordStore(Settings(), client=client)
    assert store.insert({"title": "T"}) == {"id": "new", "title": "T"}

    client.data = []
    with pytest.raises(RuntimeError, match="returned no rows"):
        store.insert({"title": "T"})


def test_delete_filters_by_id():
    client = FakeClient()
    SupabaseRecordStore(Settings(), client=client).delete("abc")
    _, steps = client.executed[0]
    assert [name for name, _, _ in steps] == ["delete", "eq"]
    assert steps[1][1] == ("id", "abc")


def test_check_connection():
    assert SupabaseRecordStore(Settings(), client=FakeClient()).check_connection() is True
    assert SupabaseRecordStore(Settings(), client=FakeClient(fail=True)).check_connection() is False


def test_memory_store_assigns_ids_and_orders():
    store = MemoryRecordStore([{"id": "old", "title": "Old", "created_at": "2026-01-01T00:00:00+00:00"}])
    row = store.insert({"title": "New"})
    assert row["id"] and row["created_at"]
    assert [r["title"] for r in store.select_all()] == ["New", "Old"]
    store.delete("old")
    assert [r["title"] for r in store.select_all()] == ["New"]
