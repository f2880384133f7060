# Shared pytest fixtures
from __future__ import annotations

import csv
import io
from pathlib import Path

import pytest

from merch_catalog.catalog.storage import MemoryStorage
from merch_catalog.catalog.store import CatalogStore
from merch_catalog.catalog.wishlist import WishlistStore

HEADERS = [
    "image_filename",
    "中文名字 Chinese Name",
    "日文名字 Japanese Name",
    "类型 Type",
    "相关作品 Relevant Work",
    "相关人物 Relevant Character",
    "相关柄图 Relevant Image",
    "Releaser/Event 发行商",
    "发行日期 Release Year/Date",
    "发行价格 Release Price (JPY)",
    "发行地区 Release Area",
    "信息来源 Resource",
    "详细信息 Detailed Information",
    "备注 Notes",
]

ROWS = [
    ["sakura_badge.png", "樱花徽章", "さくら缶バッジ", "Badge;Limited", "Card Captor Sakura",
     "Sakura Kinomoto", "Spring", "Animate", "2021-04-01", "550", "Japan", "twitter",
     "Spring campaign badge", "first run"],
    ["tomoyo_stand.png", "", "知世アクリルスタンド", "Stand", "Card Captor Sakura",
     "Tomoyo Daidouji/Sakura Kinomoto", "Summer", "Animate", "2022-07-15", "1650", "Japan",
     "", "Acrylic stand", ""],
    ["", "小狼挂件", "", "Keychain|Limited", "Card Captor Sakura", "Li Syaoran", "", "Movic",
     "unknown", "800", "China", "", "Keychain with charm", ""],
    ["dup.png", "重复甲", "", "Badge", "Tsubasa", "Sakura", "", "Movic", "2020", "500",
     "Japan", "", "First of a duplicated pair", "copy A"],
    ["dup.png", "重复乙", "", "Badge", "Tsubasa", "Syaoran", "", "Movic", "2019-12-01", "500",
     "Japan", "", "Second of a duplicated pair", "copy B"],
]


def render_csv(headers, rows, blank_lines: bool = False) -> str:
    buf = io.StringIO(newline="")
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
        if blank_lines:
            buf.write("\n")
    return buf.getvalue()


@pytest.fixture()
def sample_csv(tmp_path: Path) -> Path:
    path = tmp_path / "data.csv"
    path.write_text(render_csv(HEADERS, ROWS, blank_lines=True), encoding="utf-8")
    return path


@pytest.fixture()
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def wishlist(memory_storage: MemoryStorage) -> WishlistStore:
    return WishlistStore(memory_storage, key="wanted")


@pytest.fixture()
def catalog_store(sample_csv: Path, wishlist: WishlistStore) -> CatalogStore:
    store = CatalogStore(sample_csv, wishlist)
    store.ensure_loaded()
    return store
