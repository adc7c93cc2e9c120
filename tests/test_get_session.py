from __future__ import annotations

import asyncio

import pytest
from telethon import errors

from core.auth import AuthState, SessionAuthenticator
from fakes import FakeTransport
from get_session import TerminalAuthFlow


class DummyClient:
    def __init__(self, needs_password: bool = False) -> None:
        self.calls: list[tuple] = []
        self._needs_password = needs_password

    async def send_code_request(self, phone: str) -> None:
        self.calls.append(("send_code_request", phone))

    async def sign_in(self, **kwargs) -> None:
        self.calls.append(("sign_in", kwargs))
        if "code" in kwargs and self._needs_password:
            raise errors.SessionPasswordNeededError(request=None)


def _answers(*values: str):
    pending = list(values)

    def prompt(question: str) -> str:
        return pending.pop(0)

    return prompt


def test_phone_flow_signs_in_with_code() -> None:
    client = DummyClient()
    flow = TerminalAuthFlow(method="phone", prompt=_answers("+100", " 12345 "))

    asyncio.run(flow.authorize(client))

    assert client.calls == [
        ("send_code_request", "+100"),
        ("sign_in", {"phone": "+100", "code": "12345"}),
    ]


def test_phone_flow_falls_back_to_2fa_password() -> None:
    client = DummyClient(needs_password=True)
    flow = TerminalAuthFlow(
        method="phone",
        phone="+200",
        prompt=_answers("777"),
        secret_prompt=_answers("hunter2"),
    )

    asyncio.run(flow.authorize(client))

    assert client.calls[-1] == ("sign_in", {"password": "hunter2"})


def test_menu_choice_selects_method() -> None:
    client = DummyClient()
    flow = TerminalAuthFlow(phone="+300", prompt=_answers("9", "2", "555"))

    asyncio.run(flow.authorize(client))

    assert client.calls[0] == ("send_code_request", "+300")


def test_exit_choice_cancels_login_and_fails_authenticator() -> None:
    class FlowTransport(FakeTransport):
        async def authenticate(self, flow) -> None:
            await flow.authorize(DummyClient())

    transport = FlowTransport(authorized=False)
    authenticator = SessionAuthenticator(transport, TerminalAuthFlow(prompt=_answers("3")))

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(authenticator.authenticate())

    assert authenticator.state is AuthState.FAILED
    assert transport.sent == []
