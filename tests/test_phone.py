import hashlib

import pytest

from kezekshi_dashboard.core.tokens import generate_common_token
from kezekshi_dashboard.utils.phone import format_phone_for_display, normalize_phone, normalize_phone_digits
from kezekshi_dashboard.utils.photos import normalize_photo_url


@pytest.mark.parametrize("raw", [
    "+7 (701) 123-45-67",
    "8 701 123 45 67",
    "0077011234567",
    "87011234567",
])
def test_normalize_phone_reduces_notations_to_plus_seven(raw):
    assert normalize_phone(raw) == "+77011234567"


def test_normalize_phone_empty_input():
    assert normalize_phone("") == ""
    assert normalize_phone(None) == ""
    assert normalize_phone_digits("---") == "7"


def test_normalize_phone_truncates_extra_digits():
    assert normalize_phone_digits("+7 701 123 45 67 89") == "77011234567"


def test_format_phone_for_display_full_and_partial():
    assert format_phone_for_display("77011234567") == "+7 (701) 123-45-67"
    assert format_phone_for_display("7701") == "+7 (701)"
    assert format_phone_for_display("77") == "+7 (7"
    assert format_phone_for_display("") == ""


def test_common_token_is_sha256_of_day_number_and_secret():
    now = 86400 * 20000 + 5
    expected = hashlib.sha256(b"20000123").hexdigest()
    assert generate_common_token("123", now=now) == expected
    # Same day, same token
    assert generate_common_token("123", now=now + 3600) == expected
    assert generate_common_token("123", now=now + 86400) != expected


def test_normalize_photo_url_variants():
    assert normalize_photo_url("https://cdn/x.jpg") == "https://cdn/x.jpg"
    assert normalize_photo_url('"abc123"') == "data:image/jpeg;base64,abc123"
    assert normalize_photo_url({"image": "data:image/png;base64,zz"}) == "data:image/png;base64,zz"
    assert normalize_photo_url({"photo": None}) is None
    assert normalize_photo_url({"other": "x"}) is None
    assert normalize_photo_url(None) is None
