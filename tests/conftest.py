"""
Test fixtures for the upload client.
"""
import json
from unittest.mock import MagicMock

import boto3
import pytest
import requests
from moto import mock_aws as moto_mock_aws

from vimeo_tus.store import MemoryStore

UPLOAD_LINK = "https://files.tus.vimeo.com/files/abc123"

CREATE_BODY = {
    "uri": "/videos/76543",
    "upload": {"approach": "tus", "upload_link": UPLOAD_LINK},
}


def build_response(status_code=200, headers=None, body=None):
    response = requests.Response()
    response.status_code = status_code
    response.headers.update(headers or {})
    response._content = json.dumps(body).encode() if body is not None else b""
    return response


def echo_patch(url, headers=None, data=None, timeout=None):
    """Accept every chunk, echoing the offset it ends at."""
    offset = int(headers["Upload-Offset"]) + len(data)
    return build_response(204, {"Upload-Offset": str(offset)})


@pytest.fixture
def make_response():
    """Factory for real requests.Response objects."""
    return build_response


@pytest.fixture
def tmp_upload_dir(tmp_path):
    """Create a temporary directory for test files."""
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir()
    return upload_dir


@pytest.fixture
def make_file(tmp_upload_dir):
    """Factory writing a file of the given size."""
    def _make_file(size, name="video.mp4"):
        path = tmp_upload_dir / name
        path.write_bytes(bytes(i % 251 for i in range(size)))
        return path
    return _make_file


@pytest.fixture
def http_client():
    """HTTP session double answering like a healthy Vimeo/tus server."""
    client = MagicMock()
    client.post.return_value = build_response(201, body=CREATE_BODY)
    client.head.return_value = build_response(200, {"Upload-Offset": "0"})
    client.patch.side_effect = echo_patch
    client.delete.return_value = build_response(204)
    client.put.return_value = build_response(204)
    return client


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def mock_aws():
    """Mock S3 client using moto."""
    with moto_mock_aws():
        s3 = boto3.client('s3', region_name='us-east-1')
        s3.create_bucket(Bucket='test-bucket')
        yield s3
