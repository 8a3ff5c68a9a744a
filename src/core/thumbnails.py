"""Thumbnail size selection and on-disk cache (core domain).

Cache entries are keyed by the remote object id and never evicted: Telegram
object ids do not change their bytes, so a file on disk is always reusable.
"""

from __future__ import annotations

import base64
import logging
import os
from typing import Iterable, Optional

from core.models import ThumbnailRef, ThumbSize
from core.ports import MessagingClientPort
from core.retry import RequestRetrier

LOGGER = logging.getLogger(__name__)


class NoSuitableSizeError(ValueError):
    """Raised when an attachment has no downloadable preview size."""


def best_size(candidates: Iterable[ThumbSize]) -> ThumbSize:
    """Return the cheapest-to-fetch preview (smallest byte size).

    Ties keep input order. Candidates without a byte size (stripped or
    inline previews) cannot be downloaded and are ignored.
    """

    sized = [candidate for candidate in candidates if candidate.size > 0]
    if not sized:
        raise NoSuitableSizeError("unable to find a suitable thumbnail size")
    return sorted(sized, key=lambda candidate: candidate.size)[0]


def encode_base64(path: str) -> str:
    """Return the file at ``path`` as base64 text for inline embedding."""

    if not path:
        return ""
    with open(path, "rb") as handle:
        return base64.b64encode(handle.read()).decode("ascii")


class ThumbnailResolver:
    """Download thumbnails once into a content-addressed cache directory."""

    def __init__(self, client: MessagingClientPort, retrier: RequestRetrier, cache_dir: str) -> None:
        self._client = client
        self._retrier = retrier
        self._cache_dir = cache_dir

    def cache_path(self, ref: ThumbnailRef, dest_dir: Optional[str] = None) -> str:
        return os.path.join(dest_dir or self._cache_dir, f"{ref.object_id}.jpeg")

    async def materialize(self, ref: ThumbnailRef, dest_dir: Optional[str] = None) -> str:
        """Return a local path for ``ref``, downloading only on a cache miss."""

        path = self.cache_path(ref, dest_dir)
        if os.path.exists(path):
            return path

        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        # Only complete downloads may land on the cache path.
        partial = path + ".part"
        LOGGER.info("Downloading thumbnail for id %s", ref.object_id)
        try:
            await self._retrier.execute(lambda: self._client.download_thumbnail(ref, partial))
            os.replace(partial, path)
        except BaseException:
            if os.path.exists(partial):
                os.remove(partial)
            raise
        return path
