"""JSON export of a collected digest.

The HTML renderer lives outside this project; this export hands the final
item list to it (or to anything else) in a stable, plain-data shape.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, TextIO

from core.models import Channel, Item, Media


def _channel_dict(channel: Optional[Channel]) -> Optional[Dict[str, str]]:
    if channel is None:
        return None
    return {"domain": channel.domain, "title": channel.title}


def _media_dict(media: Media) -> Dict[str, Any]:
    return {
        "is_video": media.is_video,
        "thumbnail_path": media.thumbnail_path,
        "thumbnail_base64": media.thumbnail_base64,
        "width": media.width,
        "height": media.height,
        "duration": media.duration_label,
        "permalink": media.permalink,
    }


def item_to_dict(item: Item) -> Dict[str, Any]:
    """Return a JSON-serializable view of an item."""

    linked_page = None
    if item.linked_page is not None:
        linked_page = {
            "url": item.linked_page.url,
            "title": item.linked_page.title,
            "description": item.linked_page.description,
        }
    return {
        "message_id": item.message_id,
        "group_id": item.group_id,
        "channel": _channel_dict(item.channel),
        "text": item.text,
        "timestamp": item.timestamp.isoformat(),
        "linked_page": linked_page,
        "media": [_media_dict(media) for media in item.media],
        "forwarded_from": _channel_dict(item.forwarded_from),
    }


def export_items(items: Iterable[Item], handle: TextIO) -> int:
    """Write items as a JSON document to ``handle`` and return the item count."""

    payload: List[Dict[str, Any]] = [item_to_dict(item) for item in items]
    json.dump({"items": payload, "max_index": len(payload) - 1}, handle, ensure_ascii=False, indent=2)
    handle.write("\n")
    return len(payload)
