"""Structural ranking — list-marker rank of a name in a response.

The rank of a name is derived from the list markers that precede its
first occurrence:

  - Numbered items:  "1. ", "2) " (one or two digits)
  - Bullets:         "* ", "• "
  - Headers:         "Acme Corp:" at the start of a line

No markers before the name → unranked (None). Otherwise the name takes
the position after the last marker, unless it sits inside the item that
marker opened (same line), in which case it takes that item's position.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Marker patterns
# ---------------------------------------------------------------------------

_NUMBERED_PATTERN = re.compile(r"(?<!\S)\d{1,2}[.)](?=\s)")

_BULLET_PATTERN = re.compile(r"(?<!\S)[*•](?=\s)")

_HEADER_PATTERN = re.compile(r"^[ \t]*(?:[A-Z][a-z]+[ \t]?)+:", re.MULTILINE)

_MARKER_PATTERNS = (_NUMBERED_PATTERN, _BULLET_PATTERN, _HEADER_PATTERN)


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def find_first(text: str, name: str) -> int:
    """Offset of the first case-insensitive occurrence of ``name``, or -1.

    Plain substring match: "Acme" also matches inside "Acmeville".
    """
    if not text or not name or not name.strip():
        return -1
    match = re.search(re.escape(name), text, re.IGNORECASE)
    return match.start() if match else -1


def _marker_ends(prefix: str) -> list[int]:
    """End offsets of every list marker in ``prefix``, sorted."""
    ends: list[int] = []
    for pattern in _MARKER_PATTERNS:
        ends.extend(m.end() for m in pattern.finditer(prefix))
    ends.sort()
    return ends


def list_rank(text: str, offset: int) -> int | None:
    """1-based rank of the name found at ``offset``; None when unranked."""
    if offset < 0:
        return None

    prefix = text[:offset]
    ends = _marker_ends(prefix)
    if not ends:
        return None

    count = len(ends)
    if "\n" in prefix[ends[-1]:]:
        return count + 1
    return count


def rank_of(text: str, name: str) -> int | None:
    """Rank of ``name`` in ``text``; None if absent or unranked."""
    return list_rank(text, find_first(text, name))
