from __future__ import annotations

from merch_catalog.catalog.normalize import normalize_row
from merch_catalog.catalog.views import PLACEHOLDER_IMAGE, image_url, to_card, to_detail


def test_image_url_joins_folder_and_filename():
    record = normalize_row({"image_filename": "cat.png"}, 0)
    assert image_url(record, "images/") == "images/cat.png"


def test_image_url_placeholder_when_filename_missing():
    record = normalize_row({}, 0)
    assert image_url(record) == PLACEHOLDER_IMAGE
    assert image_url(None) == PLACEHOLDER_IMAGE
    assert PLACEHOLDER_IMAGE.startswith("data:image/svg+xml;utf8,")
    assert "600" in PLACEHOLDER_IMAGE and "400" in PLACEHOLDER_IMAGE


def test_card_and_detail_carry_wanted_flag_and_raw_columns():
    raw = {"image_filename": "cat.png", "备注 Notes": "extra"}
    record = normalize_row(raw, 3)
    card = to_card(record, wanted=True)
    assert card.wanted is True
    assert card.id == "cat.png"
    detail = to_detail(record, raw)
    assert detail.wanted is False
    assert detail.row_index == 3
    assert list(detail.raw) == ["image_filename", "备注 Notes"]
