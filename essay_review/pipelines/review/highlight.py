"""Emphasise the passages the evaluator flagged in the submitted essay."""

from __future__ import annotations

import re
from typing import Sequence

OPEN_MARKER = "<b>"
CLOSE_MARKER = "</b>"


def highlight_text(text: str, highlights: Sequence[str]) -> str:
    """Wrap every case-insensitive occurrence of a highlight in ``<b>`` tags.

    Matches are found left to right in a single pass; list order only
    decides which alternative wins when two highlights start at the same
    position.
    """

    alternatives = [re.escape(item) for item in highlights if item and item.strip()]
    if not alternatives:
        return text

    pattern = re.compile("(" + "|".join(alternatives) + ")", re.IGNORECASE)
    return pattern.sub(rf"{OPEN_MARKER}\1{CLOSE_MARKER}", text)


__all__ = ["highlight_text"]
