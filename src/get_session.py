"""Interactive Telegram login for telegazeta.

Only the ``login`` command talks to the user. ``collect`` writes the digest to
stdout, so it never prompts: it refuses to run on an unauthorized session.
Every prompt and the QR code go to stderr.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from getpass import getpass

import qrcode
from telethon import TelegramClient, errors

from client import build_client

QR_TIMEOUT_SECONDS = 120


class SessionNotAuthorizedError(RuntimeError):
    """Raised when a non-interactive command finds no authorized session."""


def _prompt(message: str) -> str:
    print(message, end="", file=sys.stderr, flush=True)
    return input().strip()


def _print_qr(url: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(out=sys.stderr, invert=True)


def _resolve_2fa_password() -> str:
    # getpass already writes its prompt to the terminal, not stdout.
    return os.getenv("2FA") or getpass("2FA password: ")


def _login_method() -> str:
    method = (os.getenv("LOGIN_METHOD") or "").strip().lower()
    if method in {"qr", "phone"}:
        return method
    choice = _prompt("Login with [1] QR code or [2] phone code? ")
    return "phone" if choice == "2" else "qr"


async def _sign_in_with_qr(client: TelegramClient) -> None:
    qr = await client.qr_login()
    print("Scan this code in Telegram > Settings > Devices:", file=sys.stderr)
    _print_qr(qr.url)
    await qr.wait(timeout=QR_TIMEOUT_SECONDS)


async def _sign_in_with_phone(client: TelegramClient) -> None:
    phone = os.getenv("PHONE") or _prompt("Phone number (international format): ")
    await client.send_code_request(phone)
    await client.sign_in(phone=phone, code=_prompt("Login code: "))


async def ensure_authorized(client: TelegramClient) -> None:
    """Fail fast instead of prompting when the session has not logged in yet."""

    if not await client.is_user_authorized():
        raise SessionNotAuthorizedError("Telegram session is not authorized; run `telegazeta login` first")


async def authorize(client: TelegramClient) -> None:
    if await client.is_user_authorized():
        return

    try:
        if _login_method() == "phone":
            await _sign_in_with_phone(client)
        else:
            await _sign_in_with_qr(client)
    except errors.SessionPasswordNeededError:
        await client.sign_in(password=_resolve_2fa_password())


async def login() -> None:
    """Run the interactive login flow and report who is signed in."""

    client = build_client()
    await client.connect()
    try:
        await authorize(client)
        me = await client.get_me()
        logging.getLogger(__name__).info("Logged in as: %s", me.first_name)
    finally:
        await client.disconnect()


if __name__ == "__main__":
    asyncio.run(login())
