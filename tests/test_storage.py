"""
Tests for the in-memory storage backend and its snapshot transactions
"""

import pytest

from atm_core.storage import InMemoryStorage


test_data = {
    "id": "test_001",
    "name": "Test Record",
    "amount": "100.50"
}


class TestInMemoryStorage:
    """Test basic CRUD operations"""

    def test_basic_operations(self):
        storage = InMemoryStorage()

        storage.save("test_table", "record_1", test_data)
        assert storage.load("test_table", "record_1") == test_data
        assert storage.exists("test_table", "record_1")
        assert not storage.exists("test_table", "non_existent")

        storage.save("test_table", "record_2", {"id": "record_2", "name": "Other"})
        assert len(storage.load_all("test_table")) == 2
        assert storage.find("test_table", {"name": "Other"})[0]["id"] == "record_2"
        assert storage.count("test_table") == 2

        assert storage.delete("test_table", "record_1")
        assert not storage.delete("test_table", "record_1")
        assert storage.count("test_table") == 1

        storage.clear_table("test_table")
        assert storage.count("test_table") == 0

    def test_records_are_copied(self):
        """Test callers cannot mutate stored state through returned dicts"""
        storage = InMemoryStorage()
        record = dict(test_data)
        storage.save("t", "r", record)
        record["name"] = "changed"

        loaded = storage.load("t", "r")
        loaded["amount"] = "0"

        assert storage.load("t", "r") == test_data


class TestAtomic:
    """Test snapshot/rollback transactions"""

    def test_commit_keeps_changes(self):
        storage = InMemoryStorage()
        with storage.atomic():
            storage.save("t", "a", {"v": 1})

        assert storage.load("t", "a") == {"v": 1}
        assert not storage.in_transaction

    def test_rollback_on_error(self):
        storage = InMemoryStorage()
        storage.save("t", "a", {"v": 1})

        with pytest.raises(RuntimeError):
            with storage.atomic():
                storage.save("t", "a", {"v": 2})
                storage.save("t", "b", {"v": 3})
                raise RuntimeError("boom")

        assert storage.load("t", "a") == {"v": 1}
        assert not storage.exists("t", "b")
        assert not storage.in_transaction

    def test_nested_rollback_only_undoes_inner(self):
        storage = InMemoryStorage()
        with storage.atomic():
            storage.save("t", "outer", {"v": 1})
            with pytest.raises(ValueError):
                with storage.atomic():
                    storage.save("t", "inner", {"v": 2})
                    raise ValueError("inner failure")

        assert storage.exists("t", "outer")
        assert not storage.exists("t", "inner")

    def test_outer_rollback_undoes_committed_inner(self):
        storage = InMemoryStorage()
        storage.save("t", "a", {"v": 1})

        with pytest.raises(RuntimeError):
            with storage.atomic():
                with storage.atomic():
                    storage.save("t", "a", {"v": 2})
                    storage.save("t", "b", {"v": 3})
                storage.delete("t", "a")
                raise RuntimeError("outer failure")

        assert storage.load("t", "a") == {"v": 1}
        assert not storage.exists("t", "b")

    def test_rollback_leaves_untouched_records_alone(self):
        storage = InMemoryStorage()
        for i in range(100):
            storage.save("history", f"e{i}", {"v": i})
        storage.save("t", "a", {"v": 1})

        with pytest.raises(RuntimeError):
            with storage.atomic():
                storage.save("t", "a", {"v": 2})
                storage.save("history", "e100", {"v": 100})
                storage.clear_table("t")
                raise RuntimeError("boom")

        assert storage.count("history") == 100
        assert storage.load("t", "a") == {"v": 1}
