"""Build a RawMail from a mail server pipe.

Mail servers such as Postfix hand a filter the message on stdin and the
envelope on the command line::

    mailfilter -f sender@example.com -- rcpt1@example.com rcpt2@example.com
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import BinaryIO

import structlog

from .addresses import AddressParseError, parse_address_list
from .config import MailFilterConfig
from .mail import RawMail

logger = structlog.get_logger()


class IngestError(ValueError):
    """Raised when the envelope arguments are malformed."""


def parse_envelope_args(argv: Sequence[str]) -> tuple[str, str]:
    """Split ``-f <sender> -- <recipients...>`` into sender and recipient text.

    Recipients are joined with ``", "`` so they parse as one address list.
    """
    args = list(argv)
    if len(args) < 2 or args[0] != "-f":
        raise IngestError("First argument has to be -f followed by the sender")
    if len(args) < 3 or args[2] != "--":
        raise IngestError("Third argument has to be -- followed by recipients")
    return args[1], ", ".join(args[3:])


def from_stdin(
    argv: Sequence[str] | None = None,
    stream: BinaryIO | None = None,
    config: MailFilterConfig | None = None,
) -> RawMail | None:
    """Read a mail from *stream* and its envelope from *argv*.

    Defaults to ``sys.stdin.buffer`` and ``sys.argv[1:]``.  Returns None
    when the stream cannot be read.
    """
    config = config or MailFilterConfig()
    stream = stream if stream is not None else sys.stdin.buffer
    argv = argv if argv is not None else sys.argv[1:]

    try:
        buf = stream.read()
    except OSError:
        logger.warning("mail_read_failed", exc_info=True)
        return None

    sender_text, recipients_text = parse_envelope_args(argv)
    logger.info("envelope_received", sender=sender_text, recipients=recipients_text)

    try:
        sender = parse_address_list(sender_text)
        recipients = parse_address_list(recipients_text)
    except AddressParseError as exc:
        raise IngestError(f"Failed to parse envelope addresses: {exc}") from exc

    return RawMail(buf, sender, recipients, fallback_sender=config.fallback_sender)
