"""Tests for mailsieve.addresses."""

from __future__ import annotations

import pytest

from mailsieve.addresses import (
    AddressList,
    Group,
    Mailbox,
    addr_list_from_iter,
    addr_single,
    iter_addrs,
    parse_address_list,
)


class TestParseAddressList:
    def test_single(self):
        assert parse_address_list("alice@example.com") == addr_single("alice@example.com")

    def test_display_names(self):
        addrs = parse_address_list("Alice <alice@example.com>, Bob <bob@example.com>")
        assert list(addrs) == [
            Mailbox("alice@example.com", "Alice"),
            Mailbox("bob@example.com", "Bob"),
        ]

    def test_group(self):
        addrs = parse_address_list("Team: a@example.com, b@example.com;, c@example.com")
        assert len(addrs) == 2
        group = addrs.entries[0]
        assert isinstance(group, Group)
        assert group.name == "Team"
        assert [m.addr for m in iter_addrs(addrs)] == [
            "a@example.com",
            "b@example.com",
            "c@example.com",
        ]

    def test_empty_text(self):
        assert parse_address_list("") == AddressList()
        assert parse_address_list("   ") == AddressList()


class TestRendering:
    def test_bare_address(self):
        assert str(Mailbox("alice@example.com")) == "alice@example.com"

    def test_display_name(self):
        assert str(Mailbox("alice@example.com", "Alice")) == "Alice <alice@example.com>"

    def test_display_name_needing_quotes(self):
        assert str(Mailbox("john@example.com", "Doe, John")) == '"Doe, John" <john@example.com>'

    def test_group(self):
        group = Group("Team", (Mailbox("a@example.com"), Mailbox("b@example.com")))
        assert str(group) == "Team: a@example.com, b@example.com;"

    def test_list(self):
        addrs = addr_list_from_iter([Mailbox("a@example.com"), Mailbox("b@example.com", "B")])
        assert str(addrs) == "a@example.com, B <b@example.com>"

    def test_utf8_address(self):
        assert str(Mailbox("jöhn@example.com")) == "jöhn@example.com"

    def test_utf8_address_with_name(self):
        assert str(Mailbox("jöhn@example.com", "Jöhn")) == "Jöhn <jöhn@example.com>"

    def test_replacement_character_address(self):
        addrs = addr_single("j\ufffdhn@example.com")
        assert str(addrs) == "j\ufffdhn@example.com"

    def test_empty_list(self):
        assert str(AddressList()) == ""
        assert not AddressList()


class TestHelpers:
    def test_first_skips_empty_group(self):
        addrs = AddressList((Group("none"), Mailbox("x@example.com")))
        assert addrs.first() == Mailbox("x@example.com")

    def test_first_of_empty(self):
        assert AddressList().first() is None

    @pytest.mark.parametrize(
        ("addr", "domain"),
        [
            ("alice@example.com", "example.com"),
            ("odd@name@host.example", "name@host.example"),
            ("postmaster", None),
        ],
    )
    def test_domain(self, addr: str, domain: str | None):
        assert Mailbox(addr).domain == domain

    def test_values_are_immutable(self):
        addrs = addr_single("alice@example.com")
        with pytest.raises(AttributeError):
            addrs.entries = ()  # type: ignore[misc]
