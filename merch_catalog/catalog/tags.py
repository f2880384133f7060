"""Tag tokenization for multi-valued spreadsheet cells."""

from __future__ import annotations

import re
from typing import List, Optional

# ASCII and fullwidth comma/semicolon, slash and pipe.
TAG_SEPARATORS = re.compile(r"[,，;；/|]+")


def tokenize(raw: Optional[str]) -> List[str]:
    """Split ``raw`` into trimmed, non-empty tokens in source order.

    Case is preserved; comparisons elsewhere are case-insensitive.
    """
    if not raw:
        return []
    tokens = (piece.strip() for piece in TAG_SEPARATORS.split(str(raw)))
    return [t for t in tokens if t]
