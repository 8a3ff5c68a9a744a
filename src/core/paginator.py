"""Walk a channel's history backward until a cutoff time (core domain)."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from core.models import ChannelRef, RawMessage
from core.ports import MessagingClientPort
from core.retry import RequestRetrier

LOGGER = logging.getLogger(__name__)


class HistoryPaginator:
    """Fetch history pages newest-first, stopping at the first message older than the cutoff.

    There is no page cap: the cutoff window is expected to be hours, not years.
    """

    def __init__(
        self,
        client: MessagingClientPort,
        retrier: RequestRetrier,
    ) -> None:
        self._client = client
        self._retrier = retrier

    async def fetch(self, ref: ChannelRef, cutoff: datetime) -> List[RawMessage]:
        messages: List[RawMessage] = []
        offset = 0
        while True:
            page = await self._retrier.execute(
                lambda: self._client.fetch_history_page(ref, offset)
            )
            if not page:
                break

            reached_cutoff = False
            for message in page:
                if message.date < cutoff:
                    reached_cutoff = True
                    break
                messages.append(message)

            if reached_cutoff:
                break
            offset += len(page)

        LOGGER.debug("Fetched %s messages from %s", len(messages), ref.handle or ref.channel_id)
        return messages
