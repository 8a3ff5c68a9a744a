"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types. Raw messages use small tagged
unions (an enum kind plus optional payloads) instead of Telethon classes, so
the engine can be exercised without a live client.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


@dataclass(frozen=True)
class Channel:
    """Resolved identity of a message source."""

    domain: str
    title: str


@dataclass(frozen=True)
class ChannelRef:
    """Handle the messaging client needs to address a channel."""

    channel_id: int
    access_hash: int
    handle: str = ""


@dataclass(frozen=True)
class LinkedPage:
    """External web page quoted by a post."""

    url: str
    title: str
    description: str


@dataclass(frozen=True)
class ThumbnailRef:
    """Location of a remote thumbnail that has not been downloaded yet."""

    kind: str  # "photo" or "document"
    object_id: int
    access_hash: int
    file_reference: bytes
    thumb_type: str
    dc_id: Optional[int] = None


@dataclass
class Media:
    """One visual attachment of an item."""

    is_video: bool = False
    thumbnail_path: str = ""
    thumbnail_base64: str = ""
    pending_download: Optional[ThumbnailRef] = None
    width: int = 0
    height: int = 0
    duration_label: str = ""
    permalink: str = ""


@dataclass
class Item:
    """One normalized post, mutated in place by the collection pipeline."""

    message_id: int
    group_id: int
    channel: Channel
    text: str
    timestamp: datetime
    linked_page: Optional[LinkedPage] = None
    media: List[Media] = field(default_factory=list)
    forwarded_from: Optional[Channel] = None

    @property
    def forwarded(self) -> bool:
        return self.forwarded_from is not None


class AnnotationKind(Enum):
    BOLD = "bold"
    ITALIC = "italic"
    STRIKETHROUGH = "strikethrough"
    TEXT_URL = "text_url"
    URL = "url"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class Annotation:
    """Style annotation over a UTF-16 range of a message body."""

    kind: AnnotationKind
    offset: int
    length: int
    url: Optional[str] = None

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True)
class ThumbSize:
    type: str
    width: int
    height: int
    size: int


@dataclass(frozen=True)
class RawPhoto:
    id: int
    access_hash: int
    file_reference: bytes
    sizes: List[ThumbSize]
    dc_id: Optional[int] = None


@dataclass(frozen=True)
class RawDocument:
    id: int
    access_hash: int
    file_reference: bytes
    mime_type: str
    thumbs: List[ThumbSize]
    duration: Optional[int] = None
    dc_id: Optional[int] = None

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")


@dataclass(frozen=True)
class RawWebPage:
    url: str
    title: str = ""
    description: str = ""
    photo: Optional[RawPhoto] = None
    document: Optional[RawDocument] = None


class AttachmentKind(Enum):
    NONE = "none"
    PHOTO = "photo"
    DOCUMENT = "document"
    WEBPAGE = "webpage"


@dataclass(frozen=True)
class Attachment:
    """Attachment of a raw message; exactly one payload matches ``kind``."""

    kind: AttachmentKind = AttachmentKind.NONE
    photo: Optional[RawPhoto] = None
    document: Optional[RawDocument] = None
    webpage: Optional[RawWebPage] = None


NO_ATTACHMENT = Attachment()


@dataclass(frozen=True)
class ForwardInfo:
    """Forward header; ``channel_id`` is None when relayed from a user."""

    channel_id: Optional[int]


@dataclass(frozen=True)
class RawMessage:
    """Message as fetched from a channel history page."""

    id: int
    date: datetime
    text: str = ""
    annotations: List[Annotation] = field(default_factory=list)
    grouped_id: int = 0
    attachment: Attachment = NO_ATTACHMENT
    forward: Optional[ForwardInfo] = None
