"""Turn raw fetched messages into normalized Items (core domain).

Thumbnails are only located here, never downloaded: the pipeline downloads
after deduplication so dropped items cost no network calls.
"""

from __future__ import annotations

import logging
from typing import Optional

from core.annotations import render
from core.cache import ChannelCache
from core.models import (
    AttachmentKind,
    Channel,
    ChannelRef,
    Item,
    LinkedPage,
    Media,
    RawDocument,
    RawMessage,
    RawPhoto,
    ThumbnailRef,
)
from core.ports import MessagingClientPort
from core.retry import RequestRetrier
from core.thumbnails import NoSuitableSizeError, best_size

LOGGER = logging.getLogger(__name__)


def format_duration(seconds: int) -> str:
    """Format a video duration as MM:SS."""

    minutes, seconds = divmod(max(int(seconds), 0), 60)
    return f"{minutes:02d}:{seconds:02d}"


def build_permalink(channel: Channel, message_id: int) -> str:
    return f"tg://resolve?domain={channel.domain}&post={message_id}"


def photo_media(photo: RawPhoto) -> Media:
    """Return a Media pending download of the photo's cheapest preview."""

    size = best_size(photo.sizes)
    return Media(
        width=size.width,
        height=size.height,
        pending_download=ThumbnailRef(
            kind="photo",
            object_id=photo.id,
            access_hash=photo.access_hash,
            file_reference=photo.file_reference,
            thumb_type=size.type,
            dc_id=photo.dc_id,
        ),
    )


def document_media(document: RawDocument) -> Media:
    """Return a Media pending download of the document's cheapest thumbnail."""

    media = Media(is_video=document.is_video)
    if media.is_video and document.duration is not None:
        media.duration_label = format_duration(document.duration)

    size = best_size(document.thumbs)
    media.width = size.width
    media.height = size.height
    media.pending_download = ThumbnailRef(
        kind="document",
        object_id=document.id,
        access_hash=document.access_hash,
        file_reference=document.file_reference,
        thumb_type=size.type,
        dc_id=document.dc_id,
    )
    return media


class ItemAssembler:
    """Build Items from raw messages, resolving forward attribution through the cache."""

    def __init__(
        self,
        client: MessagingClientPort,
        retrier: RequestRetrier,
        channel_cache: ChannelCache,
    ) -> None:
        self._client = client
        self._retrier = retrier
        self._channel_cache = channel_cache

    async def assemble(self, raw: RawMessage, channel: Channel, ref: ChannelRef) -> Item:
        item = Item(
            message_id=raw.id,
            group_id=raw.grouped_id or 0,
            channel=channel,
            text=render(raw.text or "", raw.annotations),
            timestamp=raw.date,
        )

        media = self._attachment_media(raw, item)
        if media is not None:
            media.permalink = build_permalink(channel, raw.id)
            item.media.append(media)

        if raw.forward is not None:
            item.forwarded_from = await self._forward_source(raw, ref)

        LOGGER.info(
            "Handled message %s (%s) from %s (%s chars)",
            item.message_id,
            item.timestamp,
            channel.domain or channel.title,
            len(item.text),
        )
        return item

    def _attachment_media(self, raw: RawMessage, item: Item) -> Optional[Media]:
        attachment = raw.attachment
        try:
            if attachment.kind is AttachmentKind.NONE:
                return None
            if attachment.kind is AttachmentKind.PHOTO:
                if attachment.photo is None:
                    return None
                return photo_media(attachment.photo)
            if attachment.kind is AttachmentKind.DOCUMENT:
                if attachment.document is None:
                    return None
                return document_media(attachment.document)
            if attachment.kind is AttachmentKind.WEBPAGE:
                webpage = attachment.webpage
                if webpage is None:
                    return None
                item.linked_page = LinkedPage(
                    url=webpage.url,
                    title=webpage.title,
                    description=webpage.description,
                )
                # Quoted channel posts carry their media as a document or a photo.
                if webpage.document is not None:
                    try:
                        return document_media(webpage.document)
                    except NoSuitableSizeError as exc:
                        if webpage.photo is None:
                            raise
                        LOGGER.debug("Linked page document has no preview (%s), trying photo", exc)
                if webpage.photo is not None:
                    return photo_media(webpage.photo)
                return None
            raise ValueError(f"Unknown attachment kind: {attachment.kind}")
        except NoSuitableSizeError as exc:
            # Audio, files and bare photos often ship without previews.
            LOGGER.info("No preview for %s attachment of message %s: %s", attachment.kind.value, raw.id, exc)
            return None
        except ValueError as exc:
            LOGGER.error("Unable to read %s attachment of message %s: %s", attachment.kind.value, raw.id, exc)
            return None

    async def _forward_source(self, raw: RawMessage, ref: ChannelRef) -> Optional[Channel]:
        channel_id = raw.forward.channel_id if raw.forward else None
        if channel_id is None:
            return None

        cached = self._channel_cache.get(channel_id)
        if cached is not None:
            return cached

        try:
            channel = await self._retrier.execute(
                lambda: self._client.resolve_forward_channel(ref, channel_id, raw.id)
            )
        except Exception as exc:
            LOGGER.warning("Unable to resolve forward source %s of message %s: %s", channel_id, raw.id, exc)
            return None

        self._channel_cache.put(channel_id, channel)
        return channel
