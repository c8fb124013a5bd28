"""Address-list values parsed from header text or envelope arguments.

Parsing is delegated to ``email.policy.default``'s header factory, which
understands display names, quoting, encoded words and RFC 5322 groups.
"""

from __future__ import annotations

import email.errors
import email.policy
import email.utils
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

_POLICY = email.policy.default


class AddressParseError(ValueError):
    """Raised when address text cannot be turned into an AddressList."""


@dataclass(frozen=True)
class Mailbox:
    """A single address with an optional display name."""

    addr: str
    display_name: str | None = None

    @property
    def domain(self) -> str | None:
        """Text after the first ``@``, or None when there is none."""
        _, sep, domain = self.addr.partition("@")
        return domain if sep else None

    def __str__(self) -> str:
        try:
            return email.utils.formataddr((self.display_name or "", self.addr))
        except UnicodeEncodeError:
            # formataddr only takes ASCII addr-specs; keep UTF-8 ones as they are
            return f"{self.display_name} <{self.addr}>" if self.display_name else self.addr


@dataclass(frozen=True)
class Group:
    """An RFC 5322 group: ``name: a@x, b@y;``."""

    name: str
    mailboxes: tuple[Mailbox, ...] = ()

    def __str__(self) -> str:
        return f"{self.name}: {', '.join(str(m) for m in self.mailboxes)};"


@dataclass(frozen=True)
class AddressList:
    """Ordered list of mailboxes and groups.

    ``str()`` renders the list the way it would appear in a header.
    """

    entries: tuple[Mailbox | Group, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Mailbox | Group]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __str__(self) -> str:
        return ", ".join(str(entry) for entry in self.entries)

    def first(self) -> Mailbox | None:
        """First mailbox, looking inside groups."""
        return next(iter_addrs(self), None)


def parse_address_list(text: str) -> AddressList:
    """Parse an address-list header value into an AddressList.

    Raises AddressParseError when the text holds no parsable address.
    """
    if not text.strip():
        return AddressList()
    try:
        header = _POLICY.header_factory("to", text)
    except (email.errors.HeaderParseError, IndexError, ValueError) as exc:
        raise AddressParseError(f"Cannot parse address list {text!r}: {exc}") from exc

    entries: list[Mailbox | Group] = []
    for group in header.groups:
        mailboxes = tuple(
            Mailbox(addr=address.addr_spec, display_name=address.display_name or None)
            for address in group.addresses
            if address.addr_spec
        )
        if group.display_name is None:
            entries.extend(mailboxes)
        else:
            entries.append(Group(name=group.display_name, mailboxes=mailboxes))

    if not entries:
        raise AddressParseError(f"No address found in {text!r}")
    return AddressList(tuple(entries))


def iter_addrs(addrs: AddressList) -> Iterator[Mailbox]:
    """Iterate over every mailbox of *addrs*, flattening groups."""
    for entry in addrs:
        if isinstance(entry, Group):
            yield from entry.mailboxes
        else:
            yield entry


def addr_list_from_iter(mailboxes: Iterable[Mailbox]) -> AddressList:
    return AddressList(tuple(mailboxes))


def addr_single(addr: str) -> AddressList:
    """AddressList holding one bare address."""
    return AddressList((Mailbox(addr=addr),))
