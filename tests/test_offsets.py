"""
Tests for offset reconciliation.
"""
from unittest.mock import MagicMock

import pytest

from vimeo_tus.exceptions import ProtocolError
from vimeo_tus.offsets import TUS_VERSION, VIMEO_ACCEPT, OffsetReconciler


def test_fetch_offset_sends_tus_head(make_response):
    http_client = MagicMock()
    http_client.head.return_value = make_response(200, {"Upload-Offset": "512"})

    offset = OffsetReconciler(http_client, timeout=5).fetch_offset("https://files/1")

    assert offset == 512
    http_client.head.assert_called_once_with(
        "https://files/1",
        headers={"Tus-Resumable": TUS_VERSION, "Accept": VIMEO_ACCEPT},
        timeout=5
    )


def test_fetch_offset_header_lookup_is_case_insensitive(make_response):
    http_client = MagicMock()
    http_client.head.return_value = make_response(200, {"upload-offset": "7,9"})

    assert OffsetReconciler(http_client).fetch_offset("https://files/1") == 7


def test_fetch_offset_rejects_error_status(make_response):
    http_client = MagicMock()
    http_client.head.return_value = make_response(410)

    with pytest.raises(ProtocolError) as exc_info:
        OffsetReconciler(http_client).fetch_offset("https://files/1")
    assert exc_info.value.status_code == 410
    assert "410" in str(exc_info.value)


@pytest.mark.parametrize("headers", [{}, {"Upload-Offset": "abc"}, {"Upload-Offset": ""}])
def test_fetch_offset_requires_valid_header(make_response, headers):
    http_client = MagicMock()
    http_client.head.return_value = make_response(200, headers)

    with pytest.raises(ProtocolError):
        OffsetReconciler(http_client).fetch_offset("https://files/1")


def test_confirm_offset_accepts_expected_value(make_response):
    response = make_response(204, {"Upload-Offset": "200"})
    assert OffsetReconciler.confirm_offset(response, 200) == 200


def test_confirm_offset_rejects_mismatch(make_response):
    response = make_response(204, {"Upload-Offset": "150"})

    with pytest.raises(ProtocolError, match=r"\(150\) than expected \(200\)"):
        OffsetReconciler.confirm_offset(response, 200)


def test_confirm_offset_rejects_error_status(make_response):
    with pytest.raises(ProtocolError, match="500"):
        OffsetReconciler.confirm_offset(make_response(500, {"Upload-Offset": "200"}), 200)


def test_confirm_offset_requires_header(make_response):
    with pytest.raises(ProtocolError, match="no or invalid Upload-Offset"):
        OffsetReconciler.confirm_offset(make_response(204), 200)
