"""Telethon adapter implementing the core messaging client port.

Each method issues exactly one raw API request so the core's retrier sees
Telegram's FLOOD_WAIT errors unmodified.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from telethon.tl.functions.channels import GetFullChannelRequest
from telethon.tl.functions.messages import GetHistoryRequest
from telethon.tl.types import (
    Channel as TelegramChannel,
    InputChannel,
    InputChannelFromMessage,
    InputDocumentFileLocation,
    InputPeerChannel,
    InputPhotoFileLocation,
    Message,
)

from adapters.telegram_mapper import to_raw_message
from core.models import Channel, ChannelRef, RawMessage, ThumbnailRef

LOGGER = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


class UnsupportedChannelError(ValueError):
    """Raised when a handle does not resolve to a channel or supergroup."""


def _input_peer(ref: ChannelRef) -> InputPeerChannel:
    return InputPeerChannel(channel_id=ref.channel_id, access_hash=ref.access_hash)


def _channel_from_full(full) -> Channel:
    chat = full.chats[0]
    return Channel(domain=getattr(chat, "username", None) or "", title=getattr(chat, "title", "") or "")


def to_file_location(ref: ThumbnailRef):
    if ref.kind == "photo":
        return InputPhotoFileLocation(
            id=ref.object_id,
            access_hash=ref.access_hash,
            file_reference=ref.file_reference,
            thumb_size=ref.thumb_type,
        )
    if ref.kind == "document":
        return InputDocumentFileLocation(
            id=ref.object_id,
            access_hash=ref.access_hash,
            file_reference=ref.file_reference,
            thumb_size=ref.thumb_type,
        )
    raise ValueError(f"Unable to determine file location for {ref.kind!r}")


class TelethonMessagingClient:
    """Messaging client port backed by a connected TelegramClient."""

    def __init__(
        self,
        client,
        page_size: int = DEFAULT_PAGE_SIZE,
        on_raw_message: Optional[Callable[[Message], None]] = None,
    ) -> None:
        self._client = client
        self._page_size = page_size
        self._on_raw_message = on_raw_message

    async def resolve_channel(self, handle: str) -> ChannelRef:
        entity = await self._client.get_entity(handle)
        if not isinstance(entity, TelegramChannel):
            raise UnsupportedChannelError(f"{handle} is not a channel")
        return ChannelRef(channel_id=entity.id, access_hash=entity.access_hash, handle=handle)

    async def get_channel_info(self, ref: ChannelRef) -> Channel:
        full = await self._client(
            GetFullChannelRequest(InputChannel(channel_id=ref.channel_id, access_hash=ref.access_hash))
        )
        return _channel_from_full(full)

    async def resolve_forward_channel(self, ref: ChannelRef, channel_id: int, message_id: int) -> Channel:
        # Forward sources are often not joined; the forwarding message grants access.
        input_channel = InputChannelFromMessage(peer=_input_peer(ref), msg_id=message_id, channel_id=channel_id)
        full = await self._client(GetFullChannelRequest(input_channel))
        return _channel_from_full(full)

    async def fetch_history_page(self, ref: ChannelRef, offset: int) -> List[RawMessage]:
        history = await self._client(
            GetHistoryRequest(
                peer=_input_peer(ref),
                offset_id=0,
                offset_date=None,
                add_offset=offset,
                limit=self._page_size,
                max_id=0,
                min_id=0,
                hash=0,
            )
        )
        messages: List[RawMessage] = []
        for message in getattr(history, "messages", []):
            # Service messages (joins, pins) have no body to digest.
            if not isinstance(message, Message):
                continue
            if self._on_raw_message is not None:
                self._on_raw_message(message)
            messages.append(to_raw_message(message))
        return messages

    async def download_thumbnail(self, thumb_ref: ThumbnailRef, dest_path: str) -> None:
        await self._client.download_file(
            to_file_location(thumb_ref),
            file=dest_path,
            dc_id=thumb_ref.dc_id,
        )
