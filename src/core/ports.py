"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contract for the messaging client so that the core
can be driven by Telethon in production and by fakes in tests. Every method
is a remote call and may be rate limited; the core wraps each one with the
RequestRetrier.
"""

from __future__ import annotations

from typing import List, Protocol

from core.models import Channel, ChannelRef, RawMessage, ThumbnailRef


class MessagingClientPort(Protocol):
    """Remote operations required by the collector."""

    async def resolve_channel(self, handle: str) -> ChannelRef:
        ...

    async def get_channel_info(self, ref: ChannelRef) -> Channel:
        ...

    async def resolve_forward_channel(self, ref: ChannelRef, channel_id: int, message_id: int) -> Channel:
        ...

    async def fetch_history_page(self, ref: ChannelRef, offset: int) -> List[RawMessage]:
        ...

    async def download_thumbnail(self, thumb_ref: ThumbnailRef, dest_path: str) -> None:
        ...
