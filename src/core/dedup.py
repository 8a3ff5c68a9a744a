"""Deduplication, album grouping and ordering helpers (core domain)."""

from __future__ import annotations

from typing import List, Set

from core.models import Item

FINGERPRINT_BYTES = 40


def compute_fingerprint(text: str) -> bytes:
    """Return the first 40 UTF-8 bytes of ``text``.

    A prefix keeps cross-posts matching when the forward appends a footer, but
    misses forwards whose quoted text was edited.
    """

    return text.encode("utf-8")[:FINGERPRINT_BYTES]


def sort_by_timestamp(items: List[Item]) -> List[Item]:
    return sorted(items, key=lambda item: item.timestamp)


def dedup_items(items: List[Item]) -> List[Item]:
    """Drop items whose fingerprint was already seen, keeping the first occurrence.

    Callers sort by timestamp first so the original post wins over a later
    forward. Empty-text items never mark the seen-set, so photo-only posts
    are never collapsed together.
    """

    seen: Set[bytes] = set()
    unique: List[Item] = []
    for item in items:
        fingerprint = compute_fingerprint(item.text)
        if fingerprint in seen:
            continue
        unique.append(item)
        if item.text:
            seen.add(fingerprint)
    return unique


def group_items(items: List[Item]) -> List[Item]:
    """Merge items sharing a non-zero group id into one album item.

    The first item of a group keeps its identity; later members contribute
    their media and, while the album has no text, their text. Items with
    group id 0 are always singletons.
    """

    groups: List[Item] = []
    for item in sorted(items, key=lambda item: item.group_id):
        if groups and item.group_id != 0 and item.group_id == groups[-1].group_id:
            album = groups[-1]
            album.media.extend(item.media)
            if not album.text:
                album.text = item.text
            continue
        groups.append(item)
    return groups
