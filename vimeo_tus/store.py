"""
Module for persisting upload URLs by file fingerprint.
"""
import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Maps file fingerprints to previously negotiated upload URLs."""

    @abstractmethod
    def get(self, fingerprint: str) -> Optional[str]:
        """Return the stored upload URL for a fingerprint, if any."""

    @abstractmethod
    def set(self, fingerprint: str, url: str) -> None:
        """Remember the upload URL for a fingerprint."""

    @abstractmethod
    def remove(self, fingerprint: str) -> None:
        """Forget a fingerprint."""


class MemoryStore(SessionStore):
    """Keeps sessions in process memory only."""

    def __init__(self):
        self._sessions: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, fingerprint: str) -> Optional[str]:
        with self._lock:
            return self._sessions.get(fingerprint)

    def set(self, fingerprint: str, url: str) -> None:
        with self._lock:
            self._sessions[fingerprint] = url

    def remove(self, fingerprint: str) -> None:
        with self._lock:
            self._sessions.pop(fingerprint, None)

    def items(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._sessions)


class FileStore(SessionStore):
    """Persists sessions to a JSON file so uploads survive restarts."""

    def __init__(self, state_file: Path):
        """Initialize the file store.

        Args:
            state_file: Path to the JSON file holding the sessions
        """
        self.state_file = Path(state_file)
        self._sessions: Dict[str, str] = {}
        self._lock = threading.Lock()

        self._load_state()

    def _load_state(self) -> None:
        """Load sessions from the state file."""
        if not self.state_file.exists():
            return

        try:
            with open(self.state_file, 'r') as f:
                data = json.load(f)
            self._sessions = dict(data.get('sessions', {}))
            logger.info(f"Loaded {len(self._sessions)} upload sessions from {self.state_file}")
        except Exception as e:
            logger.error(f"Error loading state file: {e}")

    def _save_state(self) -> None:
        """Write current sessions to the state file."""
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.state_file, 'w') as f:
                json.dump({'sessions': self._sessions}, f, indent=2)
            logger.debug(f"Saved {len(self._sessions)} upload sessions to {self.state_file}")
        except Exception as e:
            logger.error(f"Error saving state file: {e}")

    def get(self, fingerprint: str) -> Optional[str]:
        with self._lock:
            return self._sessions.get(fingerprint)

    def set(self, fingerprint: str, url: str) -> None:
        with self._lock:
            self._sessions[fingerprint] = url
            self._save_state()

    def remove(self, fingerprint: str) -> None:
        with self._lock:
            if self._sessions.pop(fingerprint, None) is not None:
                self._save_state()

    def items(self) -> Dict[str, str]:
        """Snapshot of all stored sessions."""
        with self._lock:
            return dict(self._sessions)


class S3Store(SessionStore):
    """Stores each session as a small object in an S3 bucket."""

    def __init__(self, bucket: str, prefix: str = "tus-sessions/", s3_client=None):
        """Initialize the S3 store.

        Args:
            bucket: Bucket holding the session objects
            prefix: Key prefix for session objects
            s3_client: Optional preconfigured boto3 S3 client
        """
        self.bucket = bucket
        self.prefix = prefix
        self.s3_client = s3_client or boto3.client('s3')

    def _key(self, fingerprint: str) -> str:
        return f"{self.prefix}{fingerprint}"

    def get(self, fingerprint: str) -> Optional[str]:
        try:
            response = self.s3_client.get_object(Bucket=self.bucket, Key=self._key(fingerprint))
        except ClientError as e:
            if e.response['Error']['Code'] in {'NoSuchKey', '404'}:
                return None
            raise
        return response['Body'].read().decode('utf-8')

    def set(self, fingerprint: str, url: str) -> None:
        self.s3_client.put_object(
            Bucket=self.bucket,
            Key=self._key(fingerprint),
            Body=url.encode('utf-8'),
            ContentType='text/plain'
        )

    def remove(self, fingerprint: str) -> None:
        self.s3_client.delete_object(Bucket=self.bucket, Key=self._key(fingerprint))

    def items(self) -> Dict[str, str]:
        """Snapshot of all stored sessions."""
        sessions = {}
        paginator = self.s3_client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket, Prefix=self.prefix):
            for obj in page.get('Contents', []):
                fingerprint = obj['Key'][len(self.prefix):]
                if (url := self.get(fingerprint)) is not None:
                    sessions[fingerprint] = url
        return sessions
