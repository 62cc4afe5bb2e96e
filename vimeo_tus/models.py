"""
Module containing data models for the upload client.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .exceptions import ProtocolError


@dataclass(frozen=True)
class Idle:
    """No upload session has been started."""


@dataclass(frozen=True)
class Resuming:
    """Looking up a stored upload URL for the fingerprint."""
    fingerprint: Optional[str]


@dataclass(frozen=True)
class Creating:
    """Asking the API for a new upload URL."""
    fingerprint: Optional[str]


@dataclass(frozen=True)
class OffsetSync:
    """Querying the server for the offset to start from."""
    upload_url: str


@dataclass(frozen=True)
class Transferring:
    """Submitting chunks; ``offset`` is the last server-confirmed value."""
    upload_url: str
    offset: int


@dataclass(frozen=True)
class Paused:
    """The upload was paused and its remote video discarded."""


@dataclass(frozen=True)
class Completed:
    """Every byte of the file was confirmed by the server."""
    upload_url: str
    offset: int


UploadState = Union[Idle, Resuming, Creating, OffsetSync, Transferring, Paused, Completed]


@dataclass
class UploadSession:
    """Represents one file being uploaded."""
    fingerprint: Optional[str]
    chunk_size: int
    file_size: Optional[int] = None
    state: UploadState = field(default_factory=Idle)

    @property
    def upload_url(self) -> Optional[str]:
        return getattr(self.state, 'upload_url', None)

    @property
    def offset(self) -> Optional[int]:
        return getattr(self.state, 'offset', None)

    @property
    def paused(self) -> bool:
        return isinstance(self.state, Paused)


@dataclass
class VideoDetails:
    """Identifiers pulled from the video creation response."""
    uri: str
    upload_link: str
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def video_id(self) -> str:
        return self.uri[self.uri.rfind('/') + 1:]

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "VideoDetails":
        """Build details from a decoded creation response body.

        Args:
            data: JSON body of the creation response

        Returns:
            VideoDetails instance

        Raises:
            ProtocolError: If the upload link is missing or empty
        """
        upload_link = (data.get('upload') or {}).get('upload_link')
        if not upload_link:
            raise ProtocolError("missing upload Uri in response for creating upload")
        return cls(uri=data.get('uri') or "", upload_link=upload_link, raw=data)
