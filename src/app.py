"""Application entry point for the telegazeta digest."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from datetime import timedelta
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import text2art
from dotenv import load_dotenv

import settings
from adapters.digest_export import export_items
from adapters.message_dump import MessageDumper
from adapters.telegram_client import TelethonMessagingClient
from client import build_client
from core.collector import CollectionPipeline
from core.config import CollectorConfig
from core.retry import RequestRetrier
from get_session import SessionNotAuthorizedError, ensure_authorized, login

NAME = "TELEGAZETA"
FONT = "tarty-1"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _print_banner() -> None:
    # stdout carries the digest, so the banner goes to stderr.
    print(text2art(NAME, font=FONT, space=1), file=sys.stderr)


class _RedactingFormatter(logging.Formatter):
    """Mask the values of secret environment variables in log lines."""

    def __init__(self, env_names: list[str]) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        values = {os.getenv(name) for name in env_names}
        self._secrets = sorted((value for value in values if value), key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _configure_logging(config: dict) -> None:
    """Log to stderr and optionally to a rotating file; stdout stays JSON-only."""

    if not config.get("enabled", False):
        return

    load_dotenv()
    redact = config.get("redact", {})
    formatter = _RedactingFormatter(redact.get("patterns", []) if redact.get("enabled", False) else [])

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler(sys.stderr))
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = settings.resolve_path(file_cfg.get("path", "logs/telegazeta.log"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setFormatter(formatter)
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, handlers=handlers or [logging.NullHandler()])


async def _collect(output: Optional[str], hours: Optional[int]) -> int:
    logger = logging.getLogger(__name__)

    client = build_client()
    await client.connect()
    try:
        # collect never prompts: its stdout is the digest.
        await ensure_authorized(client)

        dumper = MessageDumper(settings.DUMP_DIR) if settings.DUMP_DIR else None
        messaging = TelethonMessagingClient(client, page_size=settings.PAGE_SIZE, on_raw_message=dumper)
        pipeline = CollectionPipeline(
            messaging,
            CollectorConfig(
                window=timedelta(hours=hours or settings.HOURS),
                cache_dir=settings.CACHE_DIR,
                embed_thumbnails=settings.EMBED_THUMBNAILS,
            ),
            retrier=RequestRetrier(max_attempts=settings.RETRY_MAX_ATTEMPTS),
        )
        items = await pipeline.collect(settings.CHANNELS)
    finally:
        await client.disconnect()

    if output:
        with open(output, "w", encoding="utf-8") as handle:
            count = export_items(items, handle)
    else:
        count = export_items(items, sys.stdout)
    logger.info("Digest complete: channels=%s, items=%s", len(settings.CHANNELS), count)
    return count


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="telegazeta")
    subparsers = parser.add_subparsers(dest="command")

    collect_parser = subparsers.add_parser("collect", help="Collect the digest and write it as JSON")
    collect_parser.add_argument("-o", "--output", help="write to this file instead of stdout")
    collect_parser.add_argument("--hours", type=int, help="override the configured window")
    subparsers.add_parser("login", help="Authorize the Telegram session")

    args = parser.parse_args(argv)
    _print_banner()
    _configure_logging(settings.LOGGING or {})
    if args.command == "login":
        asyncio.run(login())
        return
    try:
        asyncio.run(_collect(getattr(args, "output", None), getattr(args, "hours", None)))
    except SessionNotAuthorizedError as exc:
        print(f"telegazeta: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc


if __name__ == "__main__":
    main()
