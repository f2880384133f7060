"""
Row normalization: map raw spreadsheet rows onto ``CanonicalRecord``.

The source sheet is maintained by hand and its headers drift between a
bilingual form (``"类型 Type"``), the bare Chinese name (``"类型"``), the
bare English name and a snake_case key. Each logical field therefore
lists its candidate headers in priority order; the first header present
in the row wins, even when its cell is empty.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .schemas import CanonicalRecord
from .tags import tokenize

RawRow = Dict[str, str]

IMAGE_FILENAME_ALIASES: Tuple[str, ...] = ("image_filename",)

# Title falls through to the Japanese name when the Chinese one is blank.
TITLE_ALIASES: Tuple[str, ...] = (
    "中文名字 Chinese Name",
    "中文名字",
    "日文名字 Japanese Name",
    "日文名字",
    "title",
)

FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "jp_title": ("日文名字 Japanese Name", "日文名字", "Japanese Name", "jp_title"),
    "type": ("类型 Type", "类型", "Type", "type"),
    "relevant_work": ("相关作品 Relevant Work", "相关作品", "Relevant Work", "relevant_work"),
    "relevant_character": (
        "相关人物 Relevant Character",
        "相关人物",
        "Relevant Character",
        "relevant_character",
    ),
    "relevant_image": ("相关柄图 Relevant Image", "相关柄图", "Relevant Image", "relevant_image"),
    "releaser": ("Releaser/Event 发行商", "发行商", "Releaser/Event", "releaser"),
    "release_date": ("发行日期 Release Year/Date", "发行日期", "Release Year/Date", "release_date"),
    "release_price": (
        "发行价格 Release Price (JPY)",
        "发行价格",
        "Release Price (JPY)",
        "release_price",
    ),
    "release_area": ("发行地区 Release Area", "发行地区", "Release Area", "release_area"),
    "resource": ("信息来源 Resource", "信息来源", "Resource", "resource"),
    "detailed": ("详细信息 Detailed Information", "详细信息", "Detailed Information", "detailed"),
    "description": ("详细信息 Detailed Information", "description"),
    "image_filename": IMAGE_FILENAME_ALIASES,
}

TOKEN_FIELDS = (
    "type",
    "relevant_work",
    "relevant_character",
    "relevant_image",
    "releaser",
    "release_area",
)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else str(value).strip()


def trimmed_keys(row: Mapping[str, Any]) -> Mapping[str, Any]:
    """View of ``row`` keyed by trimmed header names; first spelling wins.

    Raw rows keep padded headers such as ``"Notes "`` verbatim for export,
    while alias matching ignores the padding.
    """
    if all(key == key.strip() for key in row):
        return row
    keyed: Dict[str, Any] = {}
    for key, value in row.items():
        keyed.setdefault(key.strip(), value)
    return keyed


def resolve_field(row: Mapping[str, Any], aliases: Sequence[str]) -> Optional[str]:
    """Return the trimmed value of the first alias present in ``row``.

    ``None`` means no alias is present. A present-but-empty cell returns
    ``""`` and stops the search.
    """
    for key in aliases:
        value = row.get(key)
        if value is not None:
            return _text(value)
    return None


def resolve_first_nonblank(row: Mapping[str, Any], aliases: Sequence[str]) -> str:
    for key in aliases:
        value = row.get(key)
        if value is not None and _text(value):
            return _text(value)
    return ""


def derive_id(row: Mapping[str, Any], row_index: int) -> str:
    """Stable record id: the image filename, else ``"i<row_index>"``.

    A single leading ``$`` left behind by spreadsheet exports is dropped.
    """
    candidate = resolve_field(trimmed_keys(row), IMAGE_FILENAME_ALIASES) or ""
    if candidate.startswith("$"):
        candidate = candidate[1:].strip()
    return candidate or f"i{row_index}"


def normalize_row(row: Mapping[str, Any], row_index: int) -> CanonicalRecord:
    """Build a ``CanonicalRecord`` from one raw row.

    Never raises for bad cell content: anything missing or malformed
    degrades to an empty value.
    """
    row = trimmed_keys(row)
    values: Dict[str, Any] = {}
    for field, aliases in FIELD_ALIASES.items():
        text = resolve_field(row, aliases) or ""
        values[field] = tokenize(text) if field in TOKEN_FIELDS else text
    return CanonicalRecord(
        id=derive_id(row, row_index),
        title=resolve_first_nonblank(row, TITLE_ALIASES),
        row_index=row_index,
        **values,
    )
