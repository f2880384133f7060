from __future__ import annotations

from merch_catalog.catalog.normalize import derive_id, normalize_row, resolve_field


def test_qualified_header_wins_over_bare_header():
    row = {"类型 Type": "Badge", "类型": "Stand", "Type": "Keychain"}
    assert normalize_row(row, 0).type == ["Badge"]


def test_present_but_empty_alias_stops_resolution():
    row = {"类型 Type": "", "类型": "Stand"}
    assert resolve_field(row, ("类型 Type", "类型")) == ""
    assert normalize_row(row, 0).type == []


def test_later_aliases_used_when_earlier_absent():
    row = {"Type": "Badge", "relevant_work": "Tsubasa"}
    record = normalize_row(row, 0)
    assert record.type == ["Badge"]
    assert record.relevant_work == ["Tsubasa"]


def test_none_cell_counts_as_absent():
    row = {"类型 Type": None, "类型": "Stand"}
    assert normalize_row(row, 0).type == ["Stand"]


def test_title_falls_back_to_japanese_name():
    row = {"中文名字 Chinese Name": "  ", "日文名字 Japanese Name": " さくら "}
    record = normalize_row(row, 0)
    assert record.title == "さくら"
    assert record.jp_title == "さくら"


def test_title_prefers_chinese_name():
    row = {"中文名字": "樱花", "日文名字 Japanese Name": "さくら"}
    assert normalize_row(row, 0).title == "樱花"


def test_id_from_trimmed_image_filename():
    assert normalize_row({"image_filename": "  cat.png  "}, 5).id == "cat.png"


def test_id_falls_back_to_row_index():
    assert normalize_row({"image_filename": ""}, 5).id == "i5"
    assert normalize_row({}, 7).id == "i7"


def test_id_strips_single_leading_dollar_only():
    assert derive_id({"image_filename": "$cat.png"}, 0) == "cat.png"
    assert derive_id({"image_filename": "$$cat.png"}, 0) == "$cat.png"
    assert derive_id({"image_filename": "ca$t.png"}, 0) == "ca$t.png"
    assert derive_id({"image_filename": "$"}, 3) == "i3"


def test_missing_fields_default_to_empty():
    record = normalize_row({"unrelated": "x"}, 2)
    assert record.title == ""
    assert record.type == []
    assert record.release_date == ""
    assert record.image_filename == ""
    assert record.row_index == 2


def test_description_and_detailed_share_the_detail_column():
    record = normalize_row({"详细信息 Detailed Information": " Acrylic stand "}, 0)
    assert record.detailed == "Acrylic stand"
    assert record.description == "Acrylic stand"


def test_plain_fields_are_not_tokenized():
    row = {"发行日期 Release Year/Date": "2021/04/01", "发行价格": "550, tax incl."}
    record = normalize_row(row, 0)
    assert record.release_date == "2021/04/01"
    assert record.release_price == "550, tax incl."


def test_token_fields_split_and_trim():
    row = {"Releaser/Event 发行商": "Animate / Movic", "发行地区": "Japan；China"}
    record = normalize_row(row, 0)
    assert record.releaser == ["Animate", "Movic"]
    assert record.release_area == ["Japan", "China"]
