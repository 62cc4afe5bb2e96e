"""
Module for post-upload calls against the Vimeo API.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional

from tenacity import (
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    stop_never,
    wait_fixed,
)

from .exceptions import ProtocolError, VideoNotReadyError
from .models import VideoDetails
from .offsets import is_success

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.vimeo.com"
POLL_INTERVAL = 10
POLL_ATTEMPTS = 60


def _check_status(response, action: str) -> None:
    # 404 means the video is already gone, which callers treat as done.
    if not is_success(response.status_code) and response.status_code != 404:
        raise ProtocolError(
            f"unexpected status code ({response.status_code}) while {action}",
            status_code=response.status_code
        )


class VideoManager:
    """Status, move and delete calls for one uploaded video."""

    def __init__(self, http_client, token: str, details: VideoDetails,
                 api_url: str = DEFAULT_API_URL, timeout: Optional[float] = None):
        """Initialize the video manager.

        Args:
            http_client: Session used for API calls
            token: Vimeo API bearer token
            details: Identifiers from the creation response
            api_url: Base URL of the Vimeo API
            timeout: Per-request timeout in seconds
        """
        self.http_client = http_client
        self.token = token
        self.details = details
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.processing = False

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    @property
    def video_url(self) -> str:
        return f"{self.api_url}/videos/{self.details.video_id}"

    def delete(self) -> None:
        """Delete the remote video."""
        response = self.http_client.delete(self.video_url, headers=self._headers, timeout=self.timeout)
        _check_status(response, "deleting video")
        logger.info(f"Deleted video {self.details.video_id}")

    def move_to_folder(self, folder_id: str) -> bool:
        """Move the video into a folder (project).

        Args:
            folder_id: Target folder identifier

        Returns:
            True once the move call was accepted
        """
        url = f"{self.api_url}/me/projects/{folder_id}/videos/{self.details.video_id}"
        response = self.http_client.put(url, headers=self._headers, timeout=self.timeout)
        _check_status(response, "moving video")
        logger.info(f"Moved video {self.details.video_id} to folder {folder_id}")
        return True

    def fetch_status(self) -> Dict[str, Any]:
        response = self.http_client.get(self.video_url, headers=self._headers, timeout=self.timeout)
        _check_status(response, "retrieving video url")
        return response.json()

    def _mark_processing(self, retry_state) -> None:
        self.processing = True
        logger.info(
            f"Video {self.details.video_id} still processing "
            f"(attempt {retry_state.attempt_number})"
        )

    def get_hls_link(self, max_attempts: Optional[int] = POLL_ATTEMPTS,
                     interval: float = POLL_INTERVAL,
                     max_delay: Optional[float] = None,
                     sleep: Callable[[float], None] = time.sleep) -> str:
        """Poll until the video is available and return its HLS link.

        Args:
            max_attempts: Maximum status calls, None for no attempt bound
            interval: Seconds to wait between status calls
            max_delay: Optional overall time bound in seconds
            sleep: Function used to wait between calls

        Returns:
            Link of the file whose quality is ``hls``

        Raises:
            VideoNotReadyError: If the bounds are exhausted first
            ProtocolError: On unexpected status codes or no HLS file
        """
        stop = stop_never
        if max_attempts is not None:
            stop = stop | stop_after_attempt(max_attempts)
        if max_delay is not None:
            stop = stop | stop_after_delay(max_delay)

        retryer = Retrying(
            retry=retry_if_result(lambda status: status.get('status') != "available"),
            stop=stop,
            wait=wait_fixed(interval),
            sleep=sleep,
            before_sleep=self._mark_processing,
        )
        try:
            status = retryer(self.fetch_status)
        except RetryError as e:
            raise VideoNotReadyError(
                f"video {self.details.video_id} not available after "
                f"{e.last_attempt.attempt_number} status checks"
            ) from e

        self.processing = False
        for item in status.get('files') or []:
            if item.get('quality') == "hls":
                return item['link']
        raise ProtocolError(f"no hls file listed for video {self.details.video_id}")
