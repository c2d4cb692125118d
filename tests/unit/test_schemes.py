"""Tests for custom scheme URLs and universal link checks."""

import pytest

from meishi_exchange.deeplink.schemes import create_scheme_url, is_valid_universal_link

pytestmark = pytest.mark.unit


class TestSchemeUrls:
    def test_path_only(self):
        assert create_scheme_url("contacts") == "airmeishi://share/contacts"

    def test_parameters_are_sorted(self):
        url = create_scheme_url("/contacts", {"tab": "recent", "filter": "qr code"})
        assert url == "airmeishi://share/contacts?filter=qr+code&tab=recent"

    def test_custom_scheme_and_host(self):
        assert create_scheme_url("", scheme="meishi", host="open") == "meishi://open"


class TestUniversalLinks:
    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://airmeishi.app/share?card=x", True),
            ("https://airmeishi.app/share/123", True),
            ("https://airmeishi.app/clip?card=x", False),
            ("https://evil.example/share?card=x", False),
            ("not a url", False),
        ],
    )
    def test_is_valid_universal_link(self, url, expected):
        assert is_valid_universal_link(url, "airmeishi.app") is expected
