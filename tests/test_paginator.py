from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

from core.models import ChannelRef, RawMessage
from core.paginator import HistoryPaginator
from core.retry import RequestRetrier

NOW = datetime(2024, 1, 2, 12, 0, tzinfo=timezone.utc)
REF = ChannelRef(channel_id=1, access_hash=2, handle="news")


def _message(message_id: int, hours_ago: float) -> RawMessage:
    return RawMessage(id=message_id, date=NOW - timedelta(hours=hours_ago), text=f"m{message_id}")


class FakeHistory:
    """Serve newest-first history in fixed-size pages by offset."""

    def __init__(self, messages: list[RawMessage], page_size: int = 2, flood_on_first: bool = False) -> None:
        self._messages = messages
        self._page_size = page_size
        self._flood_on_first = flood_on_first
        self.offsets: list[int] = []

    async def fetch_history_page(self, ref: ChannelRef, offset: int) -> list[RawMessage]:
        self.offsets.append(offset)
        if self._flood_on_first:
            self._flood_on_first = False
            raise RuntimeError("FLOOD_WAIT (1)")
        return self._messages[offset:offset + self._page_size]


async def _no_sleep(delay: float) -> None:
    return None


def test_stops_before_first_message_older_than_cutoff() -> None:
    history = FakeHistory([_message(5, 1), _message(4, 2), _message(3, 3), _message(2, 30), _message(1, 31)])
    paginator = HistoryPaginator(history, RequestRetrier(sleep=_no_sleep))

    messages = asyncio.run(paginator.fetch(REF, NOW - timedelta(hours=24)))

    assert [m.id for m in messages] == [5, 4, 3]
    assert history.offsets == [0, 2]


def test_stops_on_empty_page() -> None:
    history = FakeHistory([_message(3, 1), _message(2, 2), _message(1, 3)])
    paginator = HistoryPaginator(history, RequestRetrier(sleep=_no_sleep))

    messages = asyncio.run(paginator.fetch(REF, NOW - timedelta(hours=24)))

    assert [m.id for m in messages] == [3, 2, 1]
    assert history.offsets == [0, 2, 3]


def test_page_requests_are_retried() -> None:
    history = FakeHistory([_message(1, 1)], flood_on_first=True)
    paginator = HistoryPaginator(history, RequestRetrier(sleep=_no_sleep))

    messages = asyncio.run(paginator.fetch(REF, NOW - timedelta(hours=24)))

    assert [m.id for m in messages] == [1]
    assert history.offsets[:2] == [0, 0]
