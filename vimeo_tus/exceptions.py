"""
Exceptions raised by the upload client.
"""
from typing import Optional


class ProtocolError(Exception):
    """The remote service deviated from the expected tus/Vimeo contract."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class VideoNotReadyError(ProtocolError):
    """Polling for a playback link gave up before the video became available."""


class FileChangedError(Exception):
    """The local file no longer holds the bytes measured when the upload started."""
