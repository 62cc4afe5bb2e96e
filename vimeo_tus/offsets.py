"""
Module for reconciling client and server upload offsets.
"""
import logging
from typing import Optional

from .exceptions import ProtocolError
from .parsing import parse_offset

logger = logging.getLogger(__name__)

TUS_VERSION = "1.0.0"
VIMEO_ACCEPT = "application/vnd.vimeo.*+json;version=3.4"


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class OffsetReconciler:
    """Queries the authoritative offset and validates offset echoes."""

    def __init__(self, http_client, timeout: Optional[float] = None):
        """Initialize the reconciler.

        Args:
            http_client: Session used for the HEAD request
            timeout: Per-request timeout in seconds
        """
        self.http_client = http_client
        self.timeout = timeout

    def fetch_offset(self, upload_url: str) -> int:
        """Ask the server how many bytes of the upload it holds.

        Args:
            upload_url: The upload resource to query

        Returns:
            Server-side offset to resume from

        Raises:
            ProtocolError: On a non-2xx status or a missing/invalid offset header
        """
        headers = {
            "Tus-Resumable": TUS_VERSION,
            "Accept": VIMEO_ACCEPT,
        }
        response = self.http_client.head(upload_url, headers=headers, timeout=self.timeout)

        if not is_success(response.status_code):
            raise ProtocolError(
                f"unexpected status code ({response.status_code}) while resuming upload",
                status_code=response.status_code
            )

        offset = parse_offset(response.headers.get("Upload-Offset"))
        if offset is None:
            raise ProtocolError(
                "missing upload offset in response for resuming upload",
                status_code=response.status_code
            )

        logger.debug(f"Server reports offset {offset} for {upload_url}")
        return offset

    @staticmethod
    def confirm_offset(response, expected: int) -> int:
        """Validate the offset echoed by a chunk submission.

        Args:
            response: Response to the PATCH request
            expected: Offset the client expects after the chunk

        Returns:
            The confirmed offset

        Raises:
            ProtocolError: On a non-2xx status, a missing/invalid header or a mismatch
        """
        if not is_success(response.status_code):
            raise ProtocolError(
                f"unexpected status code ({response.status_code}) while uploading chunk",
                status_code=response.status_code
            )

        offset = parse_offset(response.headers.get("Upload-Offset"))
        if offset is None:
            raise ProtocolError(
                "response to PATCH request contains no or invalid Upload-Offset header",
                status_code=response.status_code
            )
        if offset != expected:
            raise ProtocolError(
                f"response contains different Upload-Offset value ({offset}) "
                f"than expected ({expected})",
                status_code=response.status_code
            )
        return offset
