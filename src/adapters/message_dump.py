"""Write fetched Telethon messages to disk for collecting test data."""

from __future__ import annotations

import logging
import os

LOGGER = logging.getLogger(__name__)


class MessageDumper:
    """Persist each raw message as ``<dump_dir>/<message_id>.json``."""

    def __init__(self, dump_dir: str) -> None:
        self._dump_dir = dump_dir
        os.makedirs(dump_dir, exist_ok=True)

    def path_for(self, message_id: int) -> str:
        return os.path.join(self._dump_dir, f"{message_id}.json")

    def __call__(self, message) -> None:
        path = self.path_for(message.id)
        try:
            with open(path, "w", encoding="utf-8") as handle:
                handle.write(message.to_json())
        except OSError:
            # Dumps are a debugging aid; a full disk must not stop the digest.
            LOGGER.exception("Unable to dump message %s", message.id)
