from .client import CancelToken, TusClient
from .exceptions import FileChangedError, ProtocolError, VideoNotReadyError
from .fingerprint import generate_fingerprint
from .models import UploadSession, VideoDetails
from .store import FileStore, MemoryStore, S3Store, SessionStore
from .videos import VideoManager

__version__ = "0.1.0"

__all__ = [
    "TusClient",
    "CancelToken",
    "ProtocolError",
    "FileChangedError",
    "VideoNotReadyError",
    "generate_fingerprint",
    "UploadSession",
    "VideoDetails",
    "SessionStore",
    "MemoryStore",
    "FileStore",
    "S3Store",
    "VideoManager",
]
