"""
View-models for the HTTP layer: cards, detail pages and image URLs.
"""

from __future__ import annotations

import urllib.parse
from typing import Optional

from .. import config
from .normalize import RawRow
from .schemas import CanonicalRecord, RecordCard, RecordDetail

# 600x400 "No image" placeholder shown whenever a record has no image file.
PLACEHOLDER_IMAGE = "data:image/svg+xml;utf8," + urllib.parse.quote(
    '<svg xmlns="http://www.w3.org/2000/svg" width="600" height="400">'
    '<rect width="100%" height="100%" fill="#eee"/>'
    '<text x="50%" y="50%" font-size="20" text-anchor="middle" fill="#999" dy=".3em">No image</text>'
    "</svg>"
)


def image_url(record: Optional[CanonicalRecord], images_folder: Optional[str] = None) -> str:
    if record is None or not record.image_filename:
        return PLACEHOLDER_IMAGE
    folder = config.IMAGES_FOLDER if images_folder is None else images_folder
    return folder + record.image_filename


def to_card(record: CanonicalRecord, wanted: bool = False) -> RecordCard:
    return RecordCard(
        id=record.id,
        title=record.title,
        jp_title=record.jp_title,
        type=list(record.type),
        relevant_work=list(record.relevant_work),
        release_date=record.release_date,
        image_url=image_url(record),
        wanted=wanted,
    )


def to_detail(
    record: CanonicalRecord, raw: Optional[RawRow] = None, wanted: bool = False
) -> RecordDetail:
    return RecordDetail(
        **record.model_dump(),
        image_url=image_url(record),
        wanted=wanted,
        raw=dict(raw or {}),
    )
