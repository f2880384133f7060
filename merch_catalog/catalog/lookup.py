"""
Detail lookup: resolve an id back to its record.

Ids reach the detail view through HTML attributes and URLs and are
sometimes truncated or decorated on the way, so an exact match is
followed by a lenient substring match. The lenient match can be
ambiguous; ``fallback`` selects how that is handled:

* ``"first"``  - first candidate in dataset order (historic behaviour)
* ``"unique"`` - accept only when exactly one candidate qualifies
* ``"off"``    - exact matches only
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .schemas import CanonicalRecord

logger = logging.getLogger(__name__)


def find_record(
    records: Sequence[CanonicalRecord],
    record_id: Optional[str],
    fallback: str = "first",
) -> Optional[CanonicalRecord]:
    """Return the record for ``record_id`` or ``None`` when not found."""
    wanted = (record_id or "").strip()
    if not wanted:
        return None
    for record in records:
        if record.id.strip() == wanted:
            return record
    if fallback == "off":
        return None

    candidates: List[CanonicalRecord] = []
    for record in records:
        rid = record.id.strip()
        if rid and (rid in wanted or wanted in rid):
            candidates.append(record)
            if fallback == "first":
                break
    if not candidates:
        return None
    if fallback == "unique":
        if len(candidates) > 1:
            logger.warning(
                "Id %r is ambiguous (%d partial matches); not resolving", wanted, len(candidates)
            )
            return None
        return candidates[0]
    logger.info("Id %r resolved by partial match to %r", wanted, candidates[0].id)
    return candidates[0]
