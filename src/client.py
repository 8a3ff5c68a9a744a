"""Telegram client factory for telegazeta.

The digest runs once and exits, so the client is connected and disconnected
explicitly around a single collection run.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient


def build_client() -> TelegramClient:
    """Create a Telethon client from environment variables.

    We read API_ID/API_HASH via python-dotenv to keep secrets out of the repo.
    The session name defaults to "telegazeta" to create a local .session file.
    """

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    session_name = os.getenv("SESSION_NAME", "telegazeta")

    # Fail fast on missing credentials to avoid an ambiguous login prompt.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    logging.getLogger(__name__).info("Initializing Telegram client")

    # Telethon would otherwise sleep through long FLOOD_WAITs itself; the
    # collector's retrier owns that decision.
    return TelegramClient(session_name, int(api_id), api_hash, flood_sleep_threshold=0)
