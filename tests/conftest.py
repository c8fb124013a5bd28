"""Shared test fixtures for the mailsieve test suite."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from mailsieve.addresses import AddressList, addr_single
from mailsieve.mail import RawMail


def build_raw_email(
    *,
    subject: str | None = "Hello",
    from_addr: str | None = "bob@example.com",
    to_addr: str | None = "Alice <alice@example.com>, carol@example.com",
    cc: str | None = None,
    bcc: str | None = None,
    user_agent: str | None = None,
    body: str = "Hi there.\r\nSubject: not a header\r\n",
    newline: str = "\r\n",
) -> bytes:
    """Build raw message bytes with a fixed first line.

    The first line is never locatable, so every test header comes after a
    ``Return-Path`` line.
    """
    lines = ["Return-Path: <bounce@example.com>"]
    if from_addr is not None:
        lines.append(f"From: {from_addr}")
    if to_addr is not None:
        lines.append(f"To: {to_addr}")
    if cc is not None:
        lines.append(f"Cc: {cc}")
    if bcc is not None:
        lines.append(f"Bcc: {bcc}")
    if subject is not None:
        lines.append(f"Subject: {subject}")
    if user_agent is not None:
        lines.append(f"User-Agent: {user_agent}")
    lines.append("Message-ID: <test-001@example.com>")
    head = newline.join(lines)
    return f"{head}{newline}{newline}{body}".encode("utf-8")


@pytest.fixture
def envelope_sender() -> AddressList:
    return addr_single("relay@example.net")


@pytest.fixture
def envelope_recipients() -> AddressList:
    return addr_single("dave@corp.example")


@pytest.fixture
def make_mail(
    envelope_sender: AddressList, envelope_recipients: AddressList
) -> Callable[..., RawMail]:
    def _make(**kwargs) -> RawMail:
        return RawMail(build_raw_email(**kwargs), envelope_sender, envelope_recipients)

    return _make


@pytest.fixture
def raw_mail(make_mail: Callable[..., RawMail]) -> RawMail:
    return make_mail()
