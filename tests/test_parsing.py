"""
Tests for header and URL parsing helpers.
"""
import pytest

from vimeo_tus.parsing import parse_offset, parse_url


@pytest.mark.parametrize("value,expected", [
    ("1234", 1234),
    ("1234,5678", 1234),
    ("0", 0),
    (" 42 ", 42),
    ("", None),
    (None, None),
    ("abc", None),
    ("-5", None),
    (",12", None),
])
def test_parse_offset(value, expected):
    assert parse_offset(value) == expected


def test_parse_url_inherits_host_port_and_scheme():
    assert parse_url("/files/1,ignored", "https://host:443/api") == "https://host:443/files/1"


def test_parse_url_keeps_absolute_urls():
    url = "https://files.tus.vimeo.com/files/abc?token=x"
    assert parse_url(url, "https://api.vimeo.com/me/videos") == url


def test_parse_url_inherits_scheme_for_scheme_relative_urls():
    assert parse_url("//upload.example.com/files/9", "http://host/api") == "http://upload.example.com/files/9"
