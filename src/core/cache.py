"""Run-scoped channel identity cache."""

from __future__ import annotations

from typing import Dict, Optional

from core.models import Channel


class ChannelCache:
    """Map internal channel ids to resolved Channels for one collection run."""

    def __init__(self) -> None:
        self._channels: Dict[int, Channel] = {}

    def get(self, channel_id: int) -> Optional[Channel]:
        return self._channels.get(channel_id)

    def put(self, channel_id: int, channel: Channel) -> None:
        self._channels[channel_id] = channel

    def __len__(self) -> int:
        return len(self._channels)
