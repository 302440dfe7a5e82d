"""Unit tests for identifier classification and phone normalization."""

import pytest

from common.utils.validators import (
    LoginType,
    classify_identifier,
    email_local_part,
    is_valid_email,
    is_valid_phone,
    is_valid_username,
    mask_phone_number,
    normalize_phone_number,
)


# ─────────────────────────────────────────────────────────────────
# classify_identifier
# ─────────────────────────────────────────────────────────────────


class TestClassifyIdentifier:
    @pytest.mark.parametrize("value,expected", [
        ("ana@example.com", LoginType.EMAIL),
        ("ANA.Lopez+food@Example.CO", LoginType.EMAIL),
        ("ana.lopez", LoginType.USERNAME),
        ("chef-ana", LoginType.USERNAME),
        ("+15551234567", LoginType.PHONE),
        ("+1 (555) 123-4567", LoginType.PHONE),
        ("ab", LoginType.UNKNOWN),
        ("", LoginType.UNKNOWN),
        ("ana lopez", LoginType.UNKNOWN),
        ("a@b.c", LoginType.UNKNOWN),
    ])
    def test_classifies(self, value, expected):
        assert classify_identifier(value) is expected

    def test_digits_only_is_a_username_because_username_is_tried_first(self):
        assert classify_identifier("15551234567") is LoginType.USERNAME

    def test_leading_plus_rules_out_username(self):
        assert not is_valid_username("+15551234567")
        assert classify_identifier("+15551234567") is LoginType.PHONE

    def test_username_length_limits(self):
        assert is_valid_username("abc")
        assert is_valid_username("a" * 30)
        assert not is_valid_username("a" * 31)

    def test_email_tld_needs_two_letters(self):
        assert is_valid_email("ana@example.io")
        assert not is_valid_email("ana@example.i")


# ─────────────────────────────────────────────────────────────────
# Phone numbers
# ─────────────────────────────────────────────────────────────────


class TestPhoneNumbers:
    @pytest.mark.parametrize("raw,expected", [
        ("+1 (555) 123-4567", "+15551234567"),
        ("  +34 600 11 22 33 ", "+34600112233"),
        ("555+123", "555123"),
        ("", ""),
    ])
    def test_normalize_keeps_digits_and_leading_plus(self, raw, expected):
        assert normalize_phone_number(raw) == expected

    def test_minimum_stripped_length_is_eight(self):
        assert is_valid_phone("+1234567")
        assert not is_valid_phone("+123456")

    def test_rejects_leading_zero(self):
        assert not is_valid_phone("0123456789")

    def test_rejects_more_than_fifteen_digits(self):
        assert is_valid_phone("+123456789012345")
        assert not is_valid_phone("+1234567890123456")

    def test_mask_keeps_last_four_digits(self):
        assert mask_phone_number("+1 555 123 4567") == "***4567"
        assert mask_phone_number(None) == "<none>"


class TestEmailLocalPart:
    def test_returns_text_before_at(self):
        assert email_local_part("ana@example.com") == "ana"

    def test_empty_without_at(self):
        assert email_local_part("ana") == ""
        assert email_local_part(None) == ""
