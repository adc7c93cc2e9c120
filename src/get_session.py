"""Interactive login flow for a fresh session.

Prompts run in a worker thread so the event loop stays responsive and the
login can be cancelled together with the rest of the session.
"""

from __future__ import annotations

import asyncio
import logging
import os
from getpass import getpass
from typing import Callable, Optional

import qrcode
from telethon import TelegramClient, errors

LOGGER = logging.getLogger(__name__)

QR_LOGIN_TIMEOUT = 120


def _print_qr(url: str) -> None:
    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    qr.print_ascii(invert=True)


class TerminalAuthFlow:
    """Login with a QR code or a phone code, asking on the terminal."""

    def __init__(
        self,
        method: Optional[str] = None,
        phone: Optional[str] = None,
        password: Optional[str] = None,
        prompt: Callable[[str], str] = input,
        secret_prompt: Callable[[str], str] = getpass,
    ) -> None:
        self._method = method
        self._phone = phone
        self._password = password
        self._prompt = prompt
        self._secret_prompt = secret_prompt

    @classmethod
    def from_env(cls, method: Optional[str] = None) -> "TerminalAuthFlow":
        return cls(method=method, phone=os.getenv("PHONE"), password=os.getenv("2FA"))

    async def _ask(self, question: str, secret: bool = False) -> str:
        ask = self._secret_prompt if secret else self._prompt
        answer = await asyncio.to_thread(ask, question)
        return answer.strip()

    async def _resolve_2fa_password(self) -> str:
        if self._password:
            return self._password
        return await self._ask("2FA password: ", secret=True)

    async def _pick_login_method(self) -> str:
        if self._method in {"qr", "phone"}:
            return self._method
        while True:
            print("")
            print("Login methods:")
            print("[1] QR code")
            print("[2] Phone code")
            print("[3] Exit")
            choice = await self._ask("teleout > ")
            if choice == "1":
                return "qr"
            elif choice == "2":
                return "phone"
            elif choice == "3":
                raise asyncio.CancelledError("login aborted")
            else:
                print("Invalid option. Please choose 1, 2, or 3.")

    async def _authorize_with_qr(self, client: TelegramClient) -> None:
        qr = await client.qr_login()
        _print_qr(qr.url)
        try:
            await qr.wait(timeout=QR_LOGIN_TIMEOUT)
        except errors.SessionPasswordNeededError:
            await client.sign_in(password=await self._resolve_2fa_password())

    async def _authorize_with_phone(self, client: TelegramClient) -> None:
        phone = self._phone or await self._ask("Phone number (international format): ")
        await client.send_code_request(phone)
        code = await self._ask("Login code: ")
        try:
            await client.sign_in(phone=phone, code=code)
        except errors.SessionPasswordNeededError:
            await client.sign_in(password=await self._resolve_2fa_password())

    async def authorize(self, client: TelegramClient) -> None:
        method = await self._pick_login_method()
        LOGGER.info("Logging in with %s", method)
        if method == "phone":
            await self._authorize_with_phone(client)
        else:
            await self._authorize_with_qr(client)
