"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core pipeline: Telethon's
class hierarchy is folded into the core's closed attachment and annotation
kinds here, and nowhere else.
"""

from __future__ import annotations

from typing import List, Optional

from telethon.tl.types import (
    Document,
    DocumentAttributeVideo,
    MessageEntityBold,
    MessageEntityItalic,
    MessageEntityStrike,
    MessageEntityTextUrl,
    MessageEntityUrl,
    MessageMediaDocument,
    MessageMediaPhoto,
    MessageMediaWebPage,
    PeerChannel,
    Photo,
    PhotoSize,
    WebPage,
)

from core.models import (
    NO_ATTACHMENT,
    Annotation,
    AnnotationKind,
    Attachment,
    AttachmentKind,
    ForwardInfo,
    RawDocument,
    RawMessage,
    RawPhoto,
    RawWebPage,
    ThumbSize,
)

_ENTITY_KINDS = (
    (MessageEntityBold, AnnotationKind.BOLD),
    (MessageEntityItalic, AnnotationKind.ITALIC),
    (MessageEntityStrike, AnnotationKind.STRIKETHROUGH),
    (MessageEntityTextUrl, AnnotationKind.TEXT_URL),
    (MessageEntityUrl, AnnotationKind.URL),
)


def to_annotation(entity) -> Annotation:
    kind = AnnotationKind.UNSUPPORTED
    for entity_type, entity_kind in _ENTITY_KINDS:
        if isinstance(entity, entity_type):
            kind = entity_kind
            break
    url = getattr(entity, "url", None) if kind is AnnotationKind.TEXT_URL else None
    return Annotation(kind=kind, offset=entity.offset, length=entity.length, url=url)


def to_thumb_sizes(candidates) -> List[ThumbSize]:
    # Only plain PhotoSize entries can be fetched by thumb type with a known size.
    return [
        ThumbSize(type=size.type, width=size.w, height=size.h, size=size.size)
        for size in candidates or []
        if isinstance(size, PhotoSize)
    ]


def to_raw_photo(photo) -> Optional[RawPhoto]:
    if not isinstance(photo, Photo):
        return None
    return RawPhoto(
        id=photo.id,
        access_hash=photo.access_hash,
        file_reference=photo.file_reference,
        sizes=to_thumb_sizes(photo.sizes),
        dc_id=getattr(photo, "dc_id", None),
    )


def _video_duration(document: Document) -> Optional[int]:
    for attribute in document.attributes or []:
        if isinstance(attribute, DocumentAttributeVideo):
            return int(attribute.duration)
    return None


def to_raw_document(document) -> Optional[RawDocument]:
    if not isinstance(document, Document):
        return None
    return RawDocument(
        id=document.id,
        access_hash=document.access_hash,
        file_reference=document.file_reference,
        mime_type=document.mime_type or "",
        thumbs=to_thumb_sizes(document.thumbs),
        duration=_video_duration(document),
        dc_id=getattr(document, "dc_id", None),
    )


def to_attachment(media) -> Attachment:
    """Fold a Telethon MessageMedia into the core attachment union."""

    if isinstance(media, MessageMediaPhoto):
        photo = to_raw_photo(media.photo)
        if photo is None:
            return NO_ATTACHMENT
        return Attachment(kind=AttachmentKind.PHOTO, photo=photo)

    if isinstance(media, MessageMediaDocument):
        document = to_raw_document(media.document)
        if document is None:
            return NO_ATTACHMENT
        return Attachment(kind=AttachmentKind.DOCUMENT, document=document)

    if isinstance(media, MessageMediaWebPage):
        webpage = media.webpage
        # Pending or empty previews carry nothing to show yet.
        if not isinstance(webpage, WebPage):
            return NO_ATTACHMENT
        return Attachment(
            kind=AttachmentKind.WEBPAGE,
            webpage=RawWebPage(
                url=webpage.url,
                title=webpage.title or "",
                description=webpage.description or "",
                photo=to_raw_photo(webpage.photo),
                document=to_raw_document(webpage.document),
            ),
        )

    return NO_ATTACHMENT


def to_forward(fwd_from) -> Optional[ForwardInfo]:
    if fwd_from is None:
        return None
    from_id = getattr(fwd_from, "from_id", None)
    if isinstance(from_id, PeerChannel):
        return ForwardInfo(channel_id=from_id.channel_id)
    return ForwardInfo(channel_id=None)


def to_raw_message(message) -> RawMessage:
    """Build a core RawMessage from a Telethon Message."""

    return RawMessage(
        id=message.id,
        date=message.date,
        text=message.message or "",
        annotations=[to_annotation(entity) for entity in message.entities or []],
        grouped_id=message.grouped_id or 0,
        attachment=to_attachment(message.media),
        forward=to_forward(getattr(message, "fwd_from", None)),
    )
