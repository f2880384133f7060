from __future__ import annotations

import csv
import io
import json
import threading
import time

import pytest

from merch_catalog.catalog.errors import StorageError, WishlistImportError
from merch_catalog.catalog.normalize import derive_id
from merch_catalog.catalog.storage import JsonFileStorage, MemoryStorage
from merch_catalog.catalog.wishlist import WishlistStore

from .conftest import HEADERS, ROWS


def read_csv(content: bytes):
    assert content.startswith(b"\xef\xbb\xbf")
    return list(csv.reader(io.StringIO(content.decode("utf-8-sig"), newline="")))


def raw_rows():
    return [dict(zip(HEADERS, row)) for row in ROWS]


def test_add_and_remove_are_idempotent_and_persisted(wishlist, memory_storage):
    wishlist.add("a")
    wishlist.add("a")
    wishlist.add("b")
    assert wishlist.ids() == ["a", "b"]
    assert json.loads(memory_storage.get_item("wanted")) == ["a", "b"]

    wishlist.remove("a")
    wishlist.remove("a")
    assert wishlist.contains("b")
    assert not wishlist.contains("a")
    assert json.loads(memory_storage.get_item("wanted")) == ["b"]


def test_toggle_returns_new_state(wishlist):
    assert wishlist.toggle("a") is True
    assert "a" in wishlist
    assert wishlist.toggle("a") is False
    assert "a" not in wishlist


def test_restores_persisted_state():
    storage = MemoryStorage({"wanted": '["x", "y"]'})
    assert WishlistStore(storage).ids() == ["x", "y"]


def test_malformed_persisted_state_starts_empty():
    storage = MemoryStorage({"wanted": "{not json"})
    assert len(WishlistStore(storage)) == 0


def test_json_round_trip(wishlist):
    for rid in ("a", "b", "c"):
        wishlist.add(rid)
    exported = wishlist.export_json()
    other = WishlistStore(MemoryStorage())
    assert other.import_json(exported) == 3
    assert set(other.ids()) == {"a", "b", "c"}


def test_import_replaces_existing_ids(wishlist, memory_storage):
    wishlist.add("old")
    wishlist.import_json('["new1", "new2"]')
    assert wishlist.ids() == ["new1", "new2"]
    assert json.loads(memory_storage.get_item("wanted")) == ["new1", "new2"]


@pytest.mark.parametrize("text", ["not json", '{"a": 1}', '"a"', "[1, 2]", '["a", null]'])
def test_malformed_import_leaves_state_untouched(wishlist, text):
    wishlist.add("keep")
    with pytest.raises(WishlistImportError):
        wishlist.import_json(text)
    assert wishlist.ids() == ["keep"]


def test_storage_failure_propagates_and_keeps_mutation(wishlist, memory_storage):
    memory_storage.fail_writes = True
    with pytest.raises(StorageError):
        wishlist.add("a")
    assert wishlist.contains("a")


def test_export_csv_includes_every_duplicate_row(wishlist):
    wishlist.add("dup.png")
    rows = read_csv(wishlist.export_csv(raw_rows(), HEADERS, derive_id))
    assert rows[0] == HEADERS
    assert len(rows) == 3
    assert rows[1] == ROWS[3]
    assert rows[2] == ROWS[4]


def test_export_csv_follows_wishlist_order_and_synthetic_ids(wishlist):
    wishlist.add("i2")
    wishlist.add("sakura_badge.png")
    rows = read_csv(wishlist.export_csv(raw_rows(), HEADERS, derive_id))
    assert rows[1] == ROWS[2]
    assert rows[2] == ROWS[0]


def test_export_csv_unmatched_id_gets_fallback_row(wishlist):
    wishlist.add("sakura_badge.png")
    wishlist.add("gone.png")
    rows = read_csv(wishlist.export_csv(raw_rows(), HEADERS, derive_id))
    assert rows[0] == HEADERS + ["id"]
    assert rows[1] == ROWS[0] + [""]
    assert rows[2] == [""] * len(HEADERS) + ["gone.png"]


def test_export_csv_without_source_rows(wishlist):
    wishlist.add("gone.png")
    assert read_csv(wishlist.export_csv([], [], derive_id)) == [["id"], ["gone.png"]]


def test_export_csv_empty_wishlist_is_noop(wishlist):
    assert wishlist.export_csv(raw_rows(), HEADERS, derive_id) is None


def test_json_file_storage_survives_restart(tmp_path):
    path = tmp_path / "state" / "local_storage.json"
    first = WishlistStore(JsonFileStorage(path))
    first.add("a")
    first.add("b")
    second = WishlistStore(JsonFileStorage(path))
    assert second.ids() == ["a", "b"]


def test_json_file_storage_write_failure_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    storage = JsonFileStorage(blocker / "local_storage.json")
    with pytest.raises(StorageError):
        storage.set_item("wanted", "[]")


class SlowFirstWriteStorage(MemoryStorage):
    """Delays the first write so a second writer can overtake it."""

    def __init__(self) -> None:
        super().__init__()
        self.first_write_started = threading.Event()
        self._writes = 0

    def set_item(self, key: str, value: str) -> None:
        self._writes += 1
        if self._writes == 1:
            self.first_write_started.set()
            time.sleep(0.2)
        super().set_item(key, value)


def test_concurrent_adds_persist_latest_state():
    storage = SlowFirstWriteStorage()
    store = WishlistStore(storage)
    worker = threading.Thread(target=store.add, args=("a",))
    worker.start()
    assert storage.first_write_started.wait(2)
    store.add("b")
    worker.join(2)
    assert store.ids() == ["a", "b"]
    assert json.loads(storage.get_item("wanted")) == store.ids()


def test_concurrent_toggles_on_same_id_cancel_out(wishlist, memory_storage):
    threads = [threading.Thread(target=wishlist.toggle, args=("a",)) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(2)
    assert wishlist.ids() == []
    assert json.loads(memory_storage.get_item("wanted")) == []
