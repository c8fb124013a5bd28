"""Mail values handed to the filter pipeline.

``BasicMail`` is the capability surface filters are written against.
``RawMail`` implements it over the unparsed message bytes: parsing and
re-serializing a whole message for a handful of header edits is slow, so
headers are located, parsed and spliced where they sit in the buffer.
"""

from __future__ import annotations

import abc
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any, NamedTuple, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator

from . import headers
from .addresses import (
    AddressList,
    AddressParseError,
    Mailbox,
    addr_list_from_iter,
    parse_address_list,
)
from .config import DEFAULT_FALLBACK_SENDER, MailFilterConfig

logger = structlog.get_logger()

T = TypeVar("T")


class MailParts(NamedTuple):
    """Final state of a mail: message bytes plus envelope addresses."""

    body: bytes
    sender: AddressList
    recipients: AddressList


class DisclosurePolicy(str, Enum):
    """What the rewritten ``To`` header reveals."""

    OPEN = "open"
    UNDISCLOSED = "undisclosed"
    KEEP = "keep"
    SENDER = "sender"


class RecipientDisclosure(BaseModel):
    """How to show recipients when they are overridden.

    * ``OPEN``: the ``To`` header lists the new recipients.  Leaks every
      recipient to every other one.
    * ``UNDISCLOSED``: the header becomes ``name <>``.
    * ``KEEP``: the original ``To`` header is left untouched.
    * ``SENDER``: the header shows the sender's address under ``name``.
    """

    model_config = ConfigDict(frozen=True)

    policy: DisclosurePolicy = Field(description="Disclosure strategy")
    name: str | None = Field(
        default=None,
        description="Display name for the undisclosed and sender policies",
    )

    @model_validator(mode="after")
    def _require_name(self) -> RecipientDisclosure:
        needs_name = (DisclosurePolicy.UNDISCLOSED, DisclosurePolicy.SENDER)
        if self.policy in needs_name and self.name is None:
            raise ValueError(f"Disclosure policy {self.policy.value!r} requires a name")
        return self

    @classmethod
    def open(cls) -> RecipientDisclosure:
        return cls(policy=DisclosurePolicy.OPEN)

    @classmethod
    def keep(cls) -> RecipientDisclosure:
        return cls(policy=DisclosurePolicy.KEEP)

    @classmethod
    def undisclosed(cls, name: str) -> RecipientDisclosure:
        return cls(policy=DisclosurePolicy.UNDISCLOSED, name=name)

    @classmethod
    def sender(cls, name: str) -> RecipientDisclosure:
        return cls(policy=DisclosurePolicy.SENDER, name=name)

    @classmethod
    def undisclosed_recipients(
        cls, config: MailFilterConfig | None = None
    ) -> RecipientDisclosure:
        """The conventional ``Undisclosed Recipients <>`` header.

        The display name comes from ``config.undisclosed_name``.
        """
        config = config or MailFilterConfig()
        return cls.undisclosed(config.undisclosed_name)


RecipientsLike = AddressList | Mailbox | str | Iterable[Mailbox | str]


def to_address_list(recipients: RecipientsLike) -> AddressList:
    """Coerce the accepted recipient shapes into an AddressList."""
    if isinstance(recipients, AddressList):
        return recipients
    if isinstance(recipients, Mailbox):
        return AddressList((recipients,))
    if isinstance(recipients, str):
        return parse_address_list(recipients)
    mailboxes: list[Mailbox] = []
    for item in recipients:
        if isinstance(item, Mailbox):
            mailboxes.append(item)
        else:
            mailboxes.extend(parse_address_list(item))
    return addr_list_from_iter(mailboxes)


class BasicMail(abc.ABC):
    """Operations every mail representation offers to filters.

    The domain, sender and recipients come in two flavours: the ones
    declared in the message headers and the envelope ones handed over by
    the mail server.  They can differ (BCC, relays, rewrites).
    """

    @abc.abstractmethod
    def into_parts(self) -> MailParts:
        """Message bytes, envelope sender and envelope recipients."""

    @abc.abstractmethod
    def header_domain(self) -> str | None:
        """Domain of the first recipient according to the headers."""

    @abc.abstractmethod
    def domain(self) -> str | None:
        """Domain of the first recipient according to the envelope."""

    @abc.abstractmethod
    def header_recipients(self) -> AddressList: ...

    @abc.abstractmethod
    def header_sender(self) -> AddressList: ...

    @abc.abstractmethod
    def recipients(self) -> AddressList: ...

    @abc.abstractmethod
    def sender(self) -> AddressList: ...

    @abc.abstractmethod
    def cc(self) -> AddressList: ...

    @abc.abstractmethod
    def bcc(self) -> AddressList: ...

    @abc.abstractmethod
    def subject(self) -> str: ...

    @abc.abstractmethod
    def user_agent(self) -> str | None: ...

    @abc.abstractmethod
    def set_header(self, header: str, value: str) -> None:
        """Replace a header value.

        Only the header text changes.  Sender and recipients cannot be
        changed this way; see :meth:`set_recipient`.
        """

    @abc.abstractmethod
    def set_recipient(
        self, recipients: RecipientsLike, disclosure: RecipientDisclosure
    ) -> None:
        """Set the envelope recipients and rewrite ``To`` per *disclosure*."""


class RawMail(BasicMail):
    """A mail kept as raw bytes.

    Derived header views (To, From, Cc, Bcc, Subject, User-Agent) are
    computed on first access and cached for the lifetime of the value.
    Header edits do not refresh the cache: edit a header before the first
    read of a view that should reflect the edit.
    """

    def __init__(
        self,
        buf: bytes | bytearray,
        sender: AddressList,
        recipients: AddressList,
        *,
        fallback_sender: str = DEFAULT_FALLBACK_SENDER,
    ) -> None:
        self._contents = bytearray(buf)
        self._sender = sender
        self._recipients = recipients
        self._fallback_sender = fallback_sender
        self._cache: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Header cache
    # ------------------------------------------------------------------

    def _cached(
        self,
        slot: str,
        header: str,
        parse: Callable[[headers.RawHeader], T],
        default: Callable[[], T],
    ) -> T:
        if slot in self._cache:
            logger.debug("header_cache_hit", field=slot)
            return self._cache[slot]

        value = default()
        raw = headers.find_header(self._contents, f"\n{header}:")
        if raw is not None:
            try:
                value = parse(raw)
            except AddressParseError:
                logger.debug("header_unparsable", field=slot, header=header)
        self._cache[slot] = value
        return value

    def _addresses(self, slot: str, header: str) -> AddressList:
        return self._cached(slot, header, lambda raw: parse_address_list(raw.text), AddressList)

    def _text(self, slot: str, header: str) -> str:
        return self._cached(slot, header, lambda raw: raw.value, str)

    # ------------------------------------------------------------------
    # BasicMail
    # ------------------------------------------------------------------

    def into_parts(self) -> MailParts:
        return MailParts(bytes(self._contents), self._sender, self._recipients)

    def header_domain(self) -> str | None:
        return self._first_domain(self.header_recipients())

    def domain(self) -> str | None:
        return self._first_domain(self.recipients())

    def header_recipients(self) -> AddressList:
        addrs = self._addresses("recipients", "to")
        logger.info("header_recipients", count=len(addrs))
        return addrs

    def header_sender(self) -> AddressList:
        addrs = self._addresses("sender", "from")
        logger.info("header_sender", count=len(addrs))
        return addrs

    def recipients(self) -> AddressList:
        logger.info("envelope_recipients", count=len(self._recipients))
        return self._recipients

    def sender(self) -> AddressList:
        logger.info("envelope_sender", count=len(self._sender))
        return self._sender

    def cc(self) -> AddressList:
        return self._addresses("cc", "cc")

    def bcc(self) -> AddressList:
        return self._addresses("bcc", "bcc")

    def subject(self) -> str:
        return self._text("subject", "subject")

    def user_agent(self) -> str | None:
        return self._text("user_agent", "user-agent") or None

    def set_header(self, header: str, value: str) -> None:
        headers.set_header(self._contents, header, value)

    def set_recipient(
        self, recipients: RecipientsLike, disclosure: RecipientDisclosure
    ) -> None:
        new_recipients = to_address_list(recipients)

        if disclosure.policy is DisclosurePolicy.OPEN:
            self.set_header("to", str(new_recipients))
        elif disclosure.policy is DisclosurePolicy.UNDISCLOSED:
            self.set_header("to", f"{disclosure.name} <>")
        elif disclosure.policy is DisclosurePolicy.SENDER:
            self.set_header("to", f"{disclosure.name} <{self._disclosed_sender()}>")

        logger.info(
            "recipients_set",
            policy=disclosure.policy.value,
            recipients=len(new_recipients),
        )
        self._recipients = new_recipients

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _disclosed_sender(self) -> str:
        sender = self.header_sender().first() or self.sender().first()
        return sender.addr if sender is not None else self._fallback_sender

    @staticmethod
    def _first_domain(addrs: AddressList) -> str | None:
        first = addrs.first()
        domain = first.domain if first is not None else None
        if domain is not None:
            logger.info("domain_found", domain=domain)
        return domain
