"""
Module for creating, resuming and pausing tus uploads to Vimeo.
"""
import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import requests

from .exceptions import FileChangedError, ProtocolError
from .fingerprint import generate_fingerprint
from .models import (
    Completed,
    Creating,
    Idle,
    OffsetSync,
    Paused,
    Resuming,
    Transferring,
    UploadSession,
    UploadState,
    VideoDetails,
)
from .offsets import TUS_VERSION, VIMEO_ACCEPT, OffsetReconciler, is_success
from .parsing import parse_url
from .source import ChunkReader, FileSource
from .store import SessionStore
from .videos import DEFAULT_API_URL, VideoManager

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = f"{DEFAULT_API_URL}/me/videos"
DEFAULT_CHUNK_SIZE = 1024 * 1024


class CancelToken:
    """Lets a pause abandon the chunk request currently in flight."""

    def __init__(self):
        self._cancelled: Future = Future()
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.done()

    def cancel(self) -> None:
        with self._lock:
            if not self._cancelled.done():
                self._cancelled.set_result(True)

    def wait(self, future: Future):
        """Wait for ``future`` unless the token is cancelled first.

        Returns:
            The future's result, or None if the token was cancelled
        """
        wait([future, self._cancelled], return_when=FIRST_COMPLETED)
        if self.cancelled:
            future.cancel()
            return None
        return future.result()


class TusClient:
    """Uploads one file to Vimeo using the tus protocol."""

    def __init__(self, file_path: Union[str, Path], token: str,
                 endpoint: str = DEFAULT_ENDPOINT,
                 store: Optional[SessionStore] = None,
                 headers: Optional[Dict[str, str]] = None,
                 body: Optional[Dict[str, Any]] = None,
                 max_chunk_size: int = DEFAULT_CHUNK_SIZE,
                 adaptive_chunk_size: bool = True,
                 api_url: str = DEFAULT_API_URL,
                 timeout: Optional[float] = 30,
                 http_client=None):
        """Initialize the client.

        Args:
            file_path: Local file to upload
            token: Vimeo API bearer token
            endpoint: URL of the video creation endpoint
            store: Optional session store; without one uploads never resume
            headers: Extra headers for the creation request
            body: JSON body for the creation request
            max_chunk_size: Upper bound for a chunk in bytes
            adaptive_chunk_size: Replace ``max_chunk_size`` with a tenth of the
                file size when the upload starts
            api_url: Base URL of the Vimeo API for post-upload calls
            timeout: Per-request timeout in seconds
            http_client: Optional preconfigured requests session
        """
        self.file_path = Path(file_path)
        self.token = token
        self.endpoint = endpoint
        self.store = store
        self.headers = headers
        self.body = body
        self.adaptive_chunk_size = adaptive_chunk_size
        self.api_url = api_url
        self.timeout = timeout
        self._http_client = http_client

        self.source = FileSource(self.file_path)
        self.reader = ChunkReader(self.source)
        self.session = UploadSession(
            fingerprint=self.generate_fingerprint(),
            chunk_size=max_chunk_size
        )
        self._details: Optional[VideoDetails] = None
        self._videos: Optional[VideoManager] = None
        self._token = CancelToken()
        self._lock = threading.Lock()

    @property
    def resuming_enabled(self) -> bool:
        return self.store is not None

    @property
    def state(self) -> UploadState:
        return self.session.state

    @property
    def fingerprint(self) -> Optional[str]:
        return self.session.fingerprint

    @property
    def upload_url(self) -> Optional[str]:
        return self.session.upload_url

    @property
    def offset(self) -> Optional[int]:
        return self.session.offset

    @property
    def file_size(self) -> Optional[int]:
        return self.session.file_size

    @property
    def max_chunk_size(self) -> int:
        return self.session.chunk_size

    @property
    def video_details(self) -> Optional[VideoDetails]:
        return self._details

    @property
    def is_video_processing(self) -> bool:
        return self._videos is not None and self._videos.processing

    def generate_fingerprint(self) -> Optional[str]:
        """Override to customize how the resume key is derived."""
        return generate_fingerprint(self.file_path)

    def get_http_client(self):
        """Override to supply a custom HTTP session."""
        if self._http_client is None:
            self._http_client = requests.Session()
        return self._http_client

    def _transition(self, state: UploadState) -> None:
        logger.debug(f"{self.file_path}: {type(self.session.state).__name__} -> {type(state).__name__}")
        self.session.state = state

    def _measure(self) -> int:
        size = self.source.length()
        self.session.file_size = size
        if self.adaptive_chunk_size:
            self.session.chunk_size = max(1, size // 10)
        return size

    def _reset_token(self) -> CancelToken:
        with self._lock:
            self._token = CancelToken()
            return self._token

    def _discard_video(self, videos: VideoManager) -> None:
        # Best effort: a failed delete must not hide the pause.
        try:
            videos.delete()
        except Exception as e:
            logger.error(f"Error deleting video after pausing {self.file_path}: {e}")

    def create(self) -> Optional[str]:
        """Create a new upload on the server.

        Returns:
            The normalized upload URL, or None if the upload was paused
            while the video was being created

        Raises:
            ProtocolError: On an unexpected status or a missing upload link
        """
        return self._create(self._reset_token())

    def _create(self, token: CancelToken) -> Optional[str]:
        self._measure()
        with self._lock:
            if token.cancelled:
                return None
            self._transition(Creating(self.session.fingerprint))

        create_headers = dict(self.headers or {})
        create_headers["Authorization"] = f"Bearer {self.token}"
        response = self.get_http_client().post(
            self.endpoint,
            headers=create_headers,
            json=self.body,
            timeout=self.timeout
        )
        if not is_success(response.status_code) and response.status_code != 404:
            raise ProtocolError(
                f"unexpected status code ({response.status_code}) while creating upload",
                status_code=response.status_code
            )

        details = VideoDetails.from_response(response.json())
        upload_url = parse_url(details.upload_link, self.endpoint)
        videos = VideoManager(
            self.get_http_client(), self.token, details,
            api_url=self.api_url, timeout=self.timeout
        )

        with self._lock:
            paused = token.cancelled
            if not paused:
                self._details = details
                self._videos = videos
                self._transition(OffsetSync(upload_url))
                if self.store is not None and self.session.fingerprint:
                    self.store.set(self.session.fingerprint, upload_url)

        if paused:
            logger.info(f"Upload of {self.file_path} paused while creating video {details.video_id}")
            self._discard_video(videos)
            return None

        logger.info(f"Created upload for {self.file_path} at {upload_url}")
        return upload_url

    def resume(self) -> bool:
        """Check whether an already started upload can be continued.

        Returns:
            True if an upload URL was found for this file
        """
        self._measure()
        with self._lock:
            self._token = CancelToken()
            current = self.session.state
            if isinstance(current, (OffsetSync, Transferring)):
                self._transition(OffsetSync(current.upload_url))
                return True

            fingerprint = self.session.fingerprint
            if not self.resuming_enabled or not fingerprint:
                return False
            self._transition(Resuming(fingerprint))

        upload_url = self.store.get(fingerprint)
        with self._lock:
            if upload_url is None:
                self._transition(Idle())
                return False
            self._transition(OffsetSync(upload_url))

        logger.info(f"Resuming upload for {self.file_path} at {upload_url}")
        return True

    def upload(self, on_progress: Optional[Callable[[float], None]] = None,
               on_complete: Optional[Callable[[], None]] = None) -> None:
        """Start or resume the upload, sending the file in chunks.

        Args:
            on_progress: Called with the confirmed percentage after each chunk
            on_complete: Called once when the whole file is confirmed

        Raises:
            ProtocolError: When the server breaks the tus contract
        """
        resumed = self.resume()
        token = self._token
        if not resumed and self._create(token) is None:
            return

        with self._lock:
            if token.cancelled:
                return
            upload_url = self.session.upload_url
            total = self.session.file_size
        http_client = self.get_http_client()

        offset = OffsetReconciler(http_client, timeout=self.timeout).fetch_offset(upload_url)
        if offset > total:
            raise ProtocolError(f"server offset ({offset}) exceeds file size ({total})")
        with self._lock:
            if token.cancelled:
                return
            self._transition(Transferring(upload_url, offset))

        if offset == total:
            self._complete(upload_url, offset, on_complete)
            return

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tus-patch")
        try:
            while not token.cancelled and offset < total:
                chunk = self.reader.read(offset, self.session.chunk_size, total)
                if not chunk:
                    raise FileChangedError(
                        f"{self.file_path} shrank during upload: no data at offset {offset} of {total}"
                    )
                expected = offset + len(chunk)
                upload_headers = {
                    "Tus-Resumable": TUS_VERSION,
                    "Upload-Offset": str(offset),
                    "Content-Type": "application/offset+octet-stream",
                    "Accept": VIMEO_ACCEPT,
                }
                future = executor.submit(
                    http_client.patch, upload_url,
                    headers=upload_headers, data=chunk, timeout=self.timeout
                )
                response = token.wait(future)
                if response is None:
                    logger.info(f"Abandoned chunk at offset {offset} of {self.file_path}")
                    return

                confirmed = OffsetReconciler.confirm_offset(response, expected)
                with self._lock:
                    if token.cancelled:
                        return
                    self._transition(Transferring(upload_url, confirmed))
                offset = confirmed
                logger.debug(f"Uploaded {offset}/{total} bytes of {self.file_path}")

                if on_progress is not None:
                    on_progress(offset / total * 100)

                if offset == total:
                    self._complete(upload_url, offset, on_complete)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _complete(self, upload_url: str, offset: int,
                  on_complete: Optional[Callable[[], None]]) -> None:
        with self._lock:
            self._transition(Completed(upload_url, offset))
        logger.info(f"Completed upload of {self.file_path}")
        self.on_complete()
        if on_complete is not None:
            on_complete()

    def on_complete(self) -> None:
        """Actions to perform after a successful upload."""
        if self.store is not None and self.session.fingerprint:
            self.store.remove(self.session.fingerprint)

    def pause(self) -> None:
        """Pause the upload.

        The in-flight chunk is abandoned, the remote video is deleted and the
        session forgets its URL, offset and fingerprint, so it cannot resume.
        A later ``upload()`` starts a new video.
        """
        with self._lock:
            self._token.cancel()
            videos = self._videos
            fingerprint = self.session.fingerprint

        # The stored URL would point at the deleted video.
        if self.store is not None and fingerprint:
            self.store.remove(fingerprint)

        # The abandoned chunk may still reach the server.
        if videos is not None:
            self._discard_video(videos)

        with self._lock:
            self._details = None
            self._videos = None
            self.session.fingerprint = None
            self.session.file_size = None
            self._transition(Paused())
        logger.info(f"Paused upload of {self.file_path}")

    def delete_video(self) -> bool:
        """Delete the video created by this client.

        Returns:
            False if no video was created
        """
        if self._videos is None:
            return False
        self._videos.delete()
        return True

    def move_video_to_folder(self, folder_id: str) -> bool:
        """Move the created video into a folder.

        Returns:
            Whether the move was performed
        """
        if self._videos is None:
            return False
        return self._videos.move_to_folder(folder_id)

    def get_video_hls_link(self, **kwargs) -> Optional[str]:
        """Wait for the created video to be available and return its HLS link.

        Keyword arguments are passed to :meth:`VideoManager.get_hls_link`.
        """
        if self._videos is None:
            return None
        return self._videos.get_hls_link(**kwargs)
