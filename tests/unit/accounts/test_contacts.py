"""Unit tests for contact resolution precedence."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from modules.accounts.contacts import (
    first_non_empty,
    get_first_name,
    get_initials,
    resolve_assignee_name,
    resolve_errand_contact,
    resolve_order_contact,
)

pytestmark = pytest.mark.unit


def _user(profile=None, name=None, phone=None):
    return SimpleNamespace(profile=profile, name=name, phone=phone)


def _profile(full_name="", phone="", delivery_address=""):
    return SimpleNamespace(full_name=full_name, phone=phone, delivery_address=delivery_address)


def _order(customer, customer_phone="", delivery_address=""):
    return SimpleNamespace(
        customer=customer,
        customer_phone=customer_phone,
        delivery_address=delivery_address,
    )


class TestOrderContact:
    def test_profile_wins_everywhere(self):
        customer = _user(
            profile=_profile("Keisha Williams", "592-600-1234", "Lot 1 Camp Street"),
            name="keisha",
            phone="592-000-0000",
        )
        contact = resolve_order_contact(_order(customer, "592-999-9999", "Lot 9 Regent Street"))
        assert contact.name == "Keisha Williams"
        assert contact.phone == "592-600-1234"
        # The order's own address beats the profile's default address.
        assert contact.address == "Lot 9 Regent Street"

    def test_falls_back_to_user_then_order(self):
        customer = _user(profile=_profile(), name="Marcus Singh")
        contact = resolve_order_contact(_order(customer, "592-611-2222"))
        assert contact.name == "Marcus Singh"
        assert contact.phone == "592-611-2222"
        assert contact.address is None

    def test_user_phone_beats_order_phone(self):
        customer = _user(name="A", phone="592-700-0000")
        contact = resolve_order_contact(_order(customer, "592-611-2222"))
        assert contact.phone == "592-700-0000"

    def test_profile_address_when_order_has_none(self):
        customer = _user(profile=_profile(delivery_address="Lot 4 Vlissengen Road"))
        assert resolve_order_contact(_order(customer)).address == "Lot 4 Vlissengen Road"

    def test_unknown_name_when_nothing_set(self):
        contact = resolve_order_contact(_order(_user(name="   ")))
        assert contact.name == "Unknown"
        assert contact.first_name == "Unknown"
        assert contact.initials == "U"


class TestErrandContact:
    def test_uses_dropoff_address(self):
        errand = SimpleNamespace(
            customer=_user(profile=_profile("Keisha Williams", delivery_address="Home")),
            customer_phone="",
            dropoff_address="Georgetown Public Hospital",
        )
        contact = resolve_errand_contact(errand)
        assert contact.address == "Georgetown Public Hospital"


class TestAssigneeName:
    def test_unassigned(self):
        assert resolve_assignee_name(None) is None

    def test_profile_name(self):
        assert resolve_assignee_name(_user(profile=_profile("Devon Persaud"))) == "Devon Persaud"

    def test_unknown_when_blank(self):
        assert resolve_assignee_name(_user()) == "Unknown"


class TestNameHelpers:
    @pytest.mark.parametrize(
        "full_name,first,initials",
        [
            ("Keisha Williams", "Keisha", "KW"),
            ("devon anand persaud", "devon", "DA"),
            ("Cher", "Cher", "C"),
            ("", "User", "U"),
            (None, "User", "U"),
            ("   ", "User", "U"),
        ],
    )
    def test_first_name_and_initials(self, full_name, first, initials):
        assert get_first_name(full_name) == first
        assert get_initials(full_name) == initials

    def test_first_non_empty_strips(self):
        assert first_non_empty(None, "  ", " x ") == "x"
        assert first_non_empty(None, "") is None
