"""Core collection pipeline.

The pipeline enforces a strict order:
1) Per channel: resolve, paginate history, assemble Items
2) Merge all channels and sort by timestamp
3) Deduplicate cross-posts (earliest post wins)
4) Download thumbnails for the survivors
5) Group album members into single Items
6) Restore timestamp order

This module is integration-agnostic. It only relies on the messaging client
port, so the same pipeline runs against Telethon or test fakes.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from core.assembler import ItemAssembler
from core.cache import ChannelCache
from core.config import CollectorConfig
from core.dedup import dedup_items, group_items, sort_by_timestamp
from core.models import Item
from core.paginator import HistoryPaginator
from core.ports import MessagingClientPort
from core.retry import RequestRetrier
from core.thumbnails import ThumbnailResolver, encode_base64

LOGGER = logging.getLogger(__name__)


class CollectionPipeline:
    """Collect a digest of recent posts across channels."""

    def __init__(
        self,
        client: MessagingClientPort,
        config: CollectorConfig,
        retrier: Optional[RequestRetrier] = None,
        paginator: Optional[HistoryPaginator] = None,
    ) -> None:
        self._client = client
        self._config = config
        self._retrier = retrier or RequestRetrier()
        # One cache per pipeline; a pipeline is built for a single run.
        self.channel_cache = ChannelCache()
        self._paginator = paginator or HistoryPaginator(client, self._retrier)
        self._assembler = ItemAssembler(client, self._retrier, self.channel_cache)
        self._thumbnails = ThumbnailResolver(client, self._retrier, config.cache_dir)

    async def collect(self, handles: Iterable[str], now: Optional[datetime] = None) -> List[Item]:
        """Return the rendered-ready Items posted within the configured window."""

        cutoff = (now or datetime.now(timezone.utc)) - self._config.window

        items: List[Item] = []
        for handle in handles:
            LOGGER.info("Processing channel %s", handle)
            try:
                channel_items = await self._collect_channel(handle, cutoff)
            except Exception:
                # A channel failure only costs that channel's posts.
                LOGGER.exception("Skipping channel %s", handle)
                continue
            items.extend(channel_items)

        # Sorting before dedup keeps the original post rather than later forwards.
        items = sort_by_timestamp(items)
        before = len(items)
        items = dedup_items(items)
        LOGGER.info("Removed %s items as duplicates", before - len(items))

        await self._materialize_thumbnails(items)

        items = group_items(items)
        return sort_by_timestamp(items)

    async def _collect_channel(self, handle: str, cutoff: datetime) -> List[Item]:
        ref = await self._retrier.execute(lambda: self._client.resolve_channel(handle))
        channel = self.channel_cache.get(ref.channel_id)
        if channel is None:
            channel = await self._retrier.execute(lambda: self._client.get_channel_info(ref))
            self.channel_cache.put(ref.channel_id, channel)

        messages = await self._paginator.fetch(ref, cutoff)
        items = []
        for message in messages:
            items.append(await self._assembler.assemble(message, channel, ref))
        LOGGER.info("Collected %s items from %s", len(items), handle)
        return items

    async def _materialize_thumbnails(self, items: List[Item]) -> None:
        LOGGER.info("Starting thumbnail downloads")
        successes = 0
        failures = 0
        for item in items:
            for media in item.media:
                ref = media.pending_download
                if ref is None:
                    continue
                # Cleared either way: a failed preview degrades to a placeholder.
                media.pending_download = None
                try:
                    path = await self._thumbnails.materialize(ref)
                    if self._config.embed_thumbnails:
                        media.thumbnail_base64 = encode_base64(path)
                except Exception as exc:
                    failures += 1
                    LOGGER.warning("Thumbnail %s unavailable: %s", ref.object_id, exc)
                    continue
                media.thumbnail_path = path
                successes += 1
        LOGGER.info("Downloads complete, %s success %s failures", successes, failures)
