"""
Module for deriving resume keys from local file paths.
"""
import re
from pathlib import Path
from typing import Union

_NON_WORD = re.compile(r"\W+")


def generate_fingerprint(file_path: Union[str, Path]) -> str:
    """Derive a stable fingerprint for a local file.

    Every run of non-word characters in the path collapses into a single
    dot, so paths that differ only in punctuation share a fingerprint.

    Args:
        file_path: Path to the file being uploaded

    Returns:
        Fingerprint string used as the session store key
    """
    return _NON_WORD.sub(".", str(file_path))
