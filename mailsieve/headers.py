"""Raw-byte header access: locate, parse and splice headers in place.

Nothing here parses the message as a whole.  A header is found with one
case-insensitive scan that stops at the end of the header block, parsed
from its first byte, and rewritten by splicing its value span.
"""

from __future__ import annotations

import email.policy
import functools
import re
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()

_POLICY = email.policy.default
_END_OF_HEADERS = (b"\r\n\r\n", b"\n\n")
_FOLD = re.compile(rb"\r?\n(?=[ \t])")

Buffer = bytes | bytearray


@dataclass(frozen=True)
class RawHeader:
    """A header parsed straight out of the buffer.

    ``value_start``/``value_end`` delimit the raw value bytes in the buffer
    the header was parsed from.
    """

    name: str
    value_raw: bytes
    value_start: int
    value_end: int

    @property
    def text(self) -> str:
        """Unfolded raw value."""
        return _FOLD.sub(b"", self.value_raw).decode("utf-8", errors="replace")

    @property
    def value(self) -> str:
        """Unfolded value with RFC 2047 encoded words decoded."""
        return str(_POLICY.header_factory(self.name, self.text))


@functools.lru_cache(maxsize=128)
def _header_pattern(header_name: str) -> re.Pattern[bytes]:
    needles = (header_name.encode("ascii"), *_END_OF_HEADERS)
    return re.compile(
        b"|".join(b"(" + re.escape(needle) + b")" for needle in needles),
        re.IGNORECASE,
    )


def locate_header(buffer: Buffer, header_name: str) -> int | None:
    """Return the offset of the first byte of *header_name* in *buffer*.

    *header_name* must start with ``\\n`` so only names at the beginning of
    a line match (e.g. ``"\\nsubject:"``).  The end-of-headers markers are
    searched for at the same time: when one of them comes first the header
    is not in the header block and None is returned.  A header on the very
    first line of the buffer has no preceding newline and is never found.
    """
    if not header_name.startswith("\n"):
        raise ValueError(f"Header name must start with a newline: {header_name!r}")

    try:
        pattern = _header_pattern(header_name)
    except UnicodeEncodeError:
        # header names are ASCII, so this one cannot be present
        logger.debug("header_name_not_ascii", header=header_name.strip())
        return None

    logger.debug("header_search", header=header_name.strip())
    match = pattern.search(buffer)
    if match is None or match.lastindex != 1:
        return None
    return match.start() + 1


def parse_header(buffer: Buffer, start: int) -> RawHeader | None:
    """Parse the ``Name: value`` header beginning at *start*.

    The value runs over folded continuation lines and stops before the
    terminating newline.  Returns None when no header can be read there.
    """
    size = len(buffer)
    line_end = buffer.find(b"\n", start)
    if line_end == -1:
        line_end = size

    colon = buffer.find(b":", start, line_end)
    if colon == -1:
        return None
    name = bytes(buffer[start:colon])
    if not name or any(ch in b" \t\r" for ch in name):
        return None

    value_start = colon + 1
    while value_start < line_end and buffer[value_start] in b" \t":
        value_start += 1

    while line_end + 1 < size and buffer[line_end + 1] in b" \t":
        line_end = buffer.find(b"\n", line_end + 1)
        if line_end == -1:
            line_end = size

    value_end = line_end
    if value_end < size and value_end > value_start and buffer[value_end - 1] == ord("\r"):
        value_end -= 1
    value_start = min(value_start, value_end)

    return RawHeader(
        name=name.decode("ascii", errors="replace"),
        value_raw=bytes(buffer[value_start:value_end]),
        value_start=value_start,
        value_end=value_end,
    )


def find_header(buffer: Buffer, header_name: str) -> RawHeader | None:
    """Locate and parse a header; *header_name* must start with ``\\n``."""
    start = locate_header(buffer, header_name)
    if start is None:
        return None
    return parse_header(buffer, start)


def set_header(buffer: bytearray, header_name: str, value: str) -> bool:
    """Replace the value of *header_name* in place.

    *header_name* is given without the leading newline or trailing colon
    (e.g. ``"Subject"``).  The buffer grows or shrinks by the difference
    between the new and old value lengths; bytes around the value span are
    kept as they are.  A header that is missing or cannot be parsed is left
    alone and False is returned.
    """
    name = header_name.strip().rstrip(":")
    header = find_header(buffer, f"\n{name}:")
    if header is None:
        logger.debug("header_not_set", header=name)
        return False

    new = value.encode("utf-8")
    start, end = header.value_start, header.value_end
    logger.debug(
        "header_splice",
        header=name,
        span=(start, end),
        old_len=end - start,
        new_len=len(new),
    )
    buffer[start:end] = new
    return True
