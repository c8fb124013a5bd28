"""mailsieve: inspect and rewrite raw mail headers in a filter pipeline.

Public API re-exported here for convenience::

    from mailsieve import Filter, RawMail, RecipientDisclosure, SmtpError
"""

from .addresses import (
    AddressList,
    AddressParseError,
    Group,
    Mailbox,
    addr_list_from_iter,
    addr_single,
    iter_addrs,
    parse_address_list,
)
from .config import MailFilterConfig
from .filter import CONTINUE, IGNORE, Action, ActionKind, Filter, FilterStep, SmtpError
from .headers import RawHeader, find_header, locate_header, parse_header, set_header
from .ingest import IngestError, from_stdin
from .logging import setup_logging
from .mail import BasicMail, DisclosurePolicy, MailParts, RawMail, RecipientDisclosure

__all__ = [
    "CONTINUE",
    "IGNORE",
    "Action",
    "ActionKind",
    "AddressList",
    "AddressParseError",
    "BasicMail",
    "DisclosurePolicy",
    "Filter",
    "FilterStep",
    "Group",
    "IngestError",
    "MailFilterConfig",
    "MailParts",
    "Mailbox",
    "RawHeader",
    "RawMail",
    "RecipientDisclosure",
    "SmtpError",
    "addr_list_from_iter",
    "addr_single",
    "find_header",
    "from_stdin",
    "iter_addrs",
    "locate_header",
    "parse_address_list",
    "parse_header",
    "set_header",
    "setup_logging",
]
