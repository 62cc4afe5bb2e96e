"""
Module for reading byte ranges of the file being uploaded.
"""
import logging
import os
from pathlib import Path
from typing import Iterator, Union

logger = logging.getLogger(__name__)

READ_BLOCK_SIZE = 64 * 1024


class FileSource:
    """A local file exposed as a length plus lazily read byte ranges."""

    def __init__(self, path: Union[str, Path], block_size: int = READ_BLOCK_SIZE):
        self.path = Path(path)
        self.block_size = block_size

    def length(self) -> int:
        return os.path.getsize(self.path)

    def open_read(self, start: int, end: int) -> Iterator[bytes]:
        """Yield the bytes of the half-open range ``[start, end)`` in blocks.

        Args:
            start: First byte to read
            end: Byte position to stop before

        Yields:
            Blocks of at most ``block_size`` bytes
        """
        with open(self.path, 'rb') as f:
            f.seek(start)
            remaining = end - start
            while remaining > 0:
                block = f.read(min(self.block_size, remaining))
                if not block:
                    break
                remaining -= len(block)
                yield block


class ChunkReader:
    """Reads bounded chunks of a source starting at a given offset."""

    def __init__(self, source: FileSource):
        self.source = source

    def read(self, offset: int, max_size: int, total_size: int) -> bytes:
        """Read the next chunk to submit.

        Args:
            offset: Byte position the chunk starts at
            max_size: Upper bound on the chunk length
            total_size: Length of the whole file

        Returns:
            Chunk bytes, shorter than ``max_size`` at the end of the file
        """
        end = min(offset + max_size, total_size)
        data = b"".join(self.source.open_read(offset, end))
        logger.debug(f"Read {len(data)} bytes of {self.source.path} at offset {offset}")
        return data
