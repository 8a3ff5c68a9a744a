from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from core.assembler import ItemAssembler, format_duration
from core.cache import ChannelCache
from core.models import (
    Annotation,
    AnnotationKind,
    Attachment,
    AttachmentKind,
    Channel,
    ChannelRef,
    ForwardInfo,
    RawDocument,
    RawMessage,
    RawPhoto,
    RawWebPage,
    ThumbSize,
)
from core.retry import RequestRetrier

DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)
CHANNEL = Channel(domain="news", title="News")
REF = ChannelRef(channel_id=10, access_hash=20, handle="news")
SIZES = [ThumbSize(type="s", width=90, height=60, size=900), ThumbSize(type="m", width=320, height=240, size=300)]


class FakeClient:
    def __init__(self, fail_forward: bool = False) -> None:
        self.fail_forward = fail_forward
        self.forward_calls: list[tuple[int, int]] = []

    async def resolve_forward_channel(self, ref: ChannelRef, channel_id: int, message_id: int) -> Channel:
        self.forward_calls.append((channel_id, message_id))
        if self.fail_forward:
            raise RuntimeError("CHANNEL_PRIVATE")
        return Channel(domain=f"source{channel_id}", title="Source")


def _assembler(client: FakeClient, cache: "ChannelCache | None" = None) -> ItemAssembler:
    return ItemAssembler(client, RequestRetrier(), cache if cache is not None else ChannelCache())


def _photo(photo_id: int = 1, sizes=SIZES) -> RawPhoto:
    return RawPhoto(id=photo_id, access_hash=2, file_reference=b"f", sizes=list(sizes), dc_id=4)


def _video(doc_id: int = 7, duration: int = 125) -> RawDocument:
    return RawDocument(
        id=doc_id,
        access_hash=3,
        file_reference=b"d",
        mime_type="video/mp4",
        thumbs=list(SIZES),
        duration=duration,
    )


def test_text_only_message() -> None:
    raw = RawMessage(
        id=1,
        date=DATE,
        text="hello world",
        annotations=[Annotation(kind=AnnotationKind.BOLD, offset=0, length=5)],
    )
    item = asyncio.run(_assembler(FakeClient()).assemble(raw, CHANNEL, REF))

    assert item.text == "<strong>hello</strong> world"
    assert item.channel == CHANNEL
    assert item.timestamp == DATE
    assert item.group_id == 0
    assert item.media == []
    assert item.forwarded_from is None


def test_photo_yields_pending_media() -> None:
    raw = RawMessage(id=2, date=DATE, grouped_id=55, attachment=Attachment(kind=AttachmentKind.PHOTO, photo=_photo()))
    item = asyncio.run(_assembler(FakeClient()).assemble(raw, CHANNEL, REF))

    assert item.group_id == 55
    assert len(item.media) == 1
    media = item.media[0]
    assert not media.is_video
    assert media.thumbnail_path == ""
    assert media.pending_download is not None
    assert media.pending_download.kind == "photo"
    assert media.pending_download.thumb_type == "m"
    assert media.pending_download.dc_id == 4
    assert (media.width, media.height) == (320, 240)
    assert media.permalink == "tg://resolve?domain=news&post=2"


def test_video_document_has_duration_label() -> None:
    raw = RawMessage(id=3, date=DATE, attachment=Attachment(kind=AttachmentKind.DOCUMENT, document=_video()))
    item = asyncio.run(_assembler(FakeClient()).assemble(raw, CHANNEL, REF))

    media = item.media[0]
    assert media.is_video
    assert media.duration_label == "02:05"
    assert media.pending_download.kind == "document"


def test_missing_thumbnail_degrades_to_text_only() -> None:
    raw = RawMessage(
        id=4,
        date=DATE,
        text="caption",
        attachment=Attachment(kind=AttachmentKind.PHOTO, photo=_photo(sizes=[])),
    )
    item = asyncio.run(_assembler(FakeClient()).assemble(raw, CHANNEL, REF))

    assert item.text == "caption"
    assert item.media == []


def test_document_without_preview_is_not_an_error(caplog) -> None:
    pdf = RawDocument(id=8, access_hash=3, file_reference=b"d", mime_type="application/pdf", thumbs=[])
    raw = RawMessage(id=13, date=DATE, text="report", attachment=Attachment(kind=AttachmentKind.DOCUMENT, document=pdf))

    with caplog.at_level(logging.DEBUG, logger="core.assembler"):
        item = asyncio.run(_assembler(FakeClient()).assemble(raw, CHANNEL, REF))

    assert item.media == []
    assert not [record for record in caplog.records if record.levelno >= logging.WARNING]
    assert any("No preview" in record.getMessage() for record in caplog.records)


def test_linked_page_with_embedded_photo() -> None:
    webpage = RawWebPage(url="https://example.com", title="Example", description="Desc", photo=_photo(9))
    raw = RawMessage(id=5, date=DATE, text="look", attachment=Attachment(kind=AttachmentKind.WEBPAGE, webpage=webpage))
    item = asyncio.run(_assembler(FakeClient()).assemble(raw, CHANNEL, REF))

    assert item.linked_page is not None
    assert item.linked_page.url == "https://example.com"
    assert item.linked_page.title == "Example"
    assert len(item.media) == 1
    assert item.media[0].pending_download.object_id == 9


def test_linked_page_prefers_document_over_photo() -> None:
    webpage = RawWebPage(url="https://t.me/other/1", photo=_photo(9), document=_video(11, duration=5))
    raw = RawMessage(id=6, date=DATE, attachment=Attachment(kind=AttachmentKind.WEBPAGE, webpage=webpage))
    item = asyncio.run(_assembler(FakeClient()).assemble(raw, CHANNEL, REF))

    assert item.media[0].pending_download.object_id == 11
    assert item.media[0].duration_label == "00:05"


def test_linked_page_without_media() -> None:
    webpage = RawWebPage(url="https://example.com")
    raw = RawMessage(id=7, date=DATE, attachment=Attachment(kind=AttachmentKind.WEBPAGE, webpage=webpage))
    item = asyncio.run(_assembler(FakeClient()).assemble(raw, CHANNEL, REF))

    assert item.linked_page is not None
    assert item.media == []


def test_forward_source_is_resolved_once_and_cached() -> None:
    client = FakeClient()
    cache = ChannelCache()
    assembler = _assembler(client, cache)

    first = RawMessage(id=8, date=DATE, forward=ForwardInfo(channel_id=42))
    second = RawMessage(id=9, date=DATE, forward=ForwardInfo(channel_id=42))
    item1 = asyncio.run(assembler.assemble(first, CHANNEL, REF))
    item2 = asyncio.run(assembler.assemble(second, CHANNEL, REF))

    assert item1.forwarded_from == Channel(domain="source42", title="Source")
    assert item2.forwarded
    assert client.forward_calls == [(42, 8)]
    assert cache.get(42) == item1.forwarded_from


def test_forward_from_cached_channel_skips_lookup() -> None:
    client = FakeClient()
    cache = ChannelCache()
    cache.put(42, Channel(domain="known", title="Known"))

    raw = RawMessage(id=10, date=DATE, forward=ForwardInfo(channel_id=42))
    item = asyncio.run(_assembler(client, cache).assemble(raw, CHANNEL, REF))

    assert item.forwarded_from.domain == "known"
    assert client.forward_calls == []


def test_unresolvable_forward_source_is_left_unset() -> None:
    raw = RawMessage(id=11, date=DATE, text="relay", forward=ForwardInfo(channel_id=42))
    item = asyncio.run(_assembler(FakeClient(fail_forward=True)).assemble(raw, CHANNEL, REF))

    assert item.text == "relay"
    assert item.forwarded_from is None


def test_forward_from_user_has_no_source_channel() -> None:
    client = FakeClient()
    raw = RawMessage(id=12, date=DATE, forward=ForwardInfo(channel_id=None))
    item = asyncio.run(_assembler(client).assemble(raw, CHANNEL, REF))

    assert item.forwarded_from is None
    assert client.forward_calls == []


def test_format_duration() -> None:
    assert format_duration(0) == "00:00"
    assert format_duration(59) == "00:59"
    assert format_duration(3600) == "60:00"
