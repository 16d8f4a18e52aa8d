"""
Directory scan for SeaFlow data files.

Scan errors on a subdirectory are logged and skipped (partial results). A
search root that cannot be read is fatal.
"""

import fnmatch
import logging
import os
from typing import List, Sequence

from cruisereplay.errors import FeedLoadError

logger = logging.getLogger(__name__)

EVT_PATTERN = "????-??-??T??-??-??[-+]??-??"
EVT_PATTERNS = (EVT_PATTERN, EVT_PATTERN + ".gz")
SFL_PATTERNS = (EVT_PATTERN + ".sfl",)


def find_files(root: str, patterns: Sequence[str], feed: str) -> List[str]:
    """
    Recursively find files whose base name matches any pattern.

    Args:
        root: Search root directory
        patterns: fnmatch patterns (case-sensitive)
        feed: Feed name for error messages

    Returns:
        Matching paths in walk order

    Raises:
        FeedLoadError: If root cannot be read
    """
    if not os.path.isdir(root):
        raise FeedLoadError(feed, f"search root {root!r} is not a readable directory")
    try:
        os.scandir(root).close()
    except OSError as e:
        raise FeedLoadError(feed, f"search root {root!r}: {e}") from e

    def on_error(err: OSError) -> None:
        logger.error("%s: scan error: %s", feed, err)

    files = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames.sort()
        for fn in sorted(filenames):
            if any(fnmatch.fnmatchcase(fn, p) for p in patterns):
                files.append(os.path.join(dirpath, fn))
    return files


def find_evt_files(root: str) -> List[str]:
    """EVT files, plain or gzip compressed."""
    return find_files(root, EVT_PATTERNS, "evt")


def find_sfl_files(root: str) -> List[str]:
    return find_files(root, SFL_PATTERNS, "sfl")
