"""
Command-line interface for the Vimeo tus uploader.
"""
import argparse
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

import requests
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_log,
    after_log
)

from .client import DEFAULT_ENDPOINT, TusClient
from .store import FileStore
from .videos import DEFAULT_API_URL, POLL_ATTEMPTS, POLL_INTERVAL

logger = logging.getLogger(__name__)

DEFAULT_STORE_FILE = "upload_sessions.json"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: Whether to enable debug logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def load_config(config_file: Optional[Path] = None) -> dict:
    """Load uploader settings (token, endpoint, store_file, polling) from JSON.

    Args:
        config_file: Path to config file

    Returns:
        Dictionary of configuration values, empty if unreadable
    """
    if not config_file:
        return {}

    try:
        with open(config_file) as f:
            config = json.load(f)
    except Exception as e:
        logger.error(f"Error loading config file {config_file}: {e}")
        return {}

    logger.info(f"Loaded {len(config)} settings from {config_file}")
    return config


def create_store(args: argparse.Namespace, config: dict) -> FileStore:
    return FileStore(Path(args.store or config.get('store_file', DEFAULT_STORE_FILE)))


def create_client(args: argparse.Namespace, config: dict) -> TusClient:
    """Create the upload client from arguments and config.

    Args:
        args: Command line arguments
        config: Values loaded from the config file

    Returns:
        Configured TusClient instance
    """
    token = args.token or config.get('token')
    if not token:
        raise ValueError("an API token is required (--token or 'token' in config)")

    file_path = Path(args.file)
    body = {
        "upload": {"approach": "tus", "size": file_path.stat().st_size},
        "name": args.name or file_path.name,
    }
    if args.description:
        body["description"] = args.description

    return TusClient(
        file_path,
        token=token,
        endpoint=config.get('endpoint', DEFAULT_ENDPOINT),
        store=create_store(args, config),
        headers={"Accept": "application/vnd.vimeo.*+json;version=3.4"},
        body=body,
        api_url=config.get('api_url', DEFAULT_API_URL),
        timeout=config.get('timeout', 30)
    )


def print_progress(percent: float) -> None:
    print(f"\rUploaded {percent:.1f}%", end="", flush=True)


@retry(
    retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=4, max=10),
    before=before_log(logger, logging.DEBUG),
    after=after_log(logger, logging.DEBUG),
    reraise=True
)
def run_upload(client: TusClient) -> None:
    """Run the upload, retrying from the last confirmed offset on network errors.

    Args:
        client: Client to drive
    """
    client.upload(on_progress=print_progress, on_complete=lambda: print())


def handle_upload(args: argparse.Namespace) -> None:
    """Handle the upload command.

    Args:
        args: Command line arguments
    """
    config = load_config(args.config)
    client = create_client(args, config)

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="upload") as executor:
        future = executor.submit(run_upload, client)
        try:
            future.result()
        except KeyboardInterrupt:
            logger.info("Upload interrupted by user")
            client.pause()
            future.result()
            sys.exit(130)

    logger.info(f"Uploaded {client.file_path}")

    if args.folder:
        if not client.move_video_to_folder(args.folder):
            logger.warning("Resumed uploads carry no video details; skipping folder move")

    if args.wait_hls:
        link = client.get_video_hls_link(
            max_attempts=config.get('poll_attempts', POLL_ATTEMPTS),
            interval=config.get('poll_interval', POLL_INTERVAL)
        )
        if link is None:
            logger.warning("Resumed uploads carry no video details; no HLS link available")
        else:
            print(link)


def handle_sessions(args: argparse.Namespace) -> None:
    """Handle the sessions command.

    Args:
        args: Command line arguments
    """
    store = create_store(args, load_config(args.config))
    sessions = store.items()
    if not sessions:
        print("No stored upload sessions found")
        return
    for fingerprint, url in sessions.items():
        print(f"{fingerprint}\t{url}")


def handle_forget(args: argparse.Namespace) -> None:
    """Handle the forget command.

    Args:
        args: Command line arguments
    """
    store = create_store(args, load_config(args.config))
    store.remove(args.fingerprint)
    logger.info(f"Forgot upload session {args.fingerprint}")


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Resumable Vimeo uploader")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help="Enable verbose logging")
    parser.add_argument('-c', '--config', type=Path,
                        help="Path to config file")
    parser.add_argument('-s', '--store', type=str,
                        help="Path to the upload session file")

    subparsers = parser.add_subparsers(dest='command', required=True)

    upload_parser = subparsers.add_parser('upload',
                                          help="Upload or resume a video file")
    upload_parser.add_argument('file', type=str,
                               help="Video file to upload")
    upload_parser.add_argument('-t', '--token', type=str,
                               help="Vimeo API token")
    upload_parser.add_argument('-n', '--name', type=str,
                               help="Video name")
    upload_parser.add_argument('-d', '--description', type=str,
                               help="Video description")
    upload_parser.add_argument('-f', '--folder', type=str,
                               help="Folder to move the video into")
    upload_parser.add_argument('--wait-hls', action='store_true',
                               help="Wait for processing and print the HLS link")

    subparsers.add_parser('sessions',
                          help="List stored upload sessions")

    forget_parser = subparsers.add_parser('forget',
                                          help="Forget a stored upload session")
    forget_parser.add_argument('fingerprint', type=str,
                               help="Fingerprint to forget")

    args = parser.parse_args()
    setup_logging(args.verbose)

    try:
        if args.command == 'upload':
            handle_upload(args)
        elif args.command == 'sessions':
            handle_sessions(args)
        elif args.command == 'forget':
            handle_forget(args)

    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
