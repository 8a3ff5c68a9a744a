"""Static configuration for telegazeta.

All user-editable settings (channels, digest window, cache, logging) live in
a single JSON file for quick edits without touching Python. Secrets stay in
the environment (see client.py).
"""

import json
import os
import tempfile

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.getenv("TELEGAZETA_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


def read_channels_file(path: str) -> list[str]:
    """Read channel handles, one per line; blank lines and # comments are skipped."""

    channels: list[str] = []
    with open(path, "r", encoding="utf-8") as handle:
        for line in handle:
            entry = line.strip()
            if not entry or entry.startswith("#"):
                continue
            channels.append(entry)
    return channels


def _normalize_channels(config: dict) -> list[str]:
    channels = [str(entry).strip() for entry in config.get("channels", []) if str(entry).strip()]
    channels_file = config.get("channels_file")
    if channels_file:
        channels.extend(read_channels_file(resolve_path(channels_file)))
    # Keep the configured order but drop repeats.
    return list(dict.fromkeys(channels))


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Channels to digest, in processing order.
CHANNELS = _normalize_channels(_CONFIG)

# Maximum age of posts included in the digest.
HOURS = int(_CONFIG.get("hours", 24))

# Thumbnail cache; entries are never evicted, so a persistent path saves downloads.
CACHE_DIR = resolve_path(_CONFIG.get("cache_dir") or tempfile.gettempdir())

# Optional directory for raw message dumps (test data collection).
DUMP_DIR = _CONFIG.get("dump_dir") or None
if DUMP_DIR:
    DUMP_DIR = resolve_path(DUMP_DIR)

# Messages requested per history page; Telegram serves at most 100.
PAGE_SIZE = int(_CONFIG.get("page_size", 20))

# Inline thumbnails as base64 so the rendered digest is self-contained.
EMBED_THUMBNAILS = bool(_CONFIG.get("embed_thumbnails", True))

# Rate-limit retry controls.
_retry = _CONFIG.get("retry", {})
RETRY_MAX_ATTEMPTS = int(_retry.get("max_attempts", 5))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
