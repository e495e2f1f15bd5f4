# hawkeye/scanner/tree.py
"""
Materialized source tree.

Wraps a local directory that the caller has already checked out or unpacked.
Listing is lazy and cached; a missing or unreadable root raises OSError from
files(), which lets each policy check record its own "check skipped" finding
instead of failing the whole audit.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

BINARY_SNIFF_BYTES = 8192


class SourceTree:
    def __init__(
        self,
        root: str,
        *,
        ignored_dirs: Sequence[str] = (),
        max_files: Optional[int] = None,
    ):
        self.root = os.path.abspath(os.fspath(root))
        self.ignored_dirs = frozenset(ignored_dirs)
        self.max_files = max_files
        self.truncated = False
        self._files: Optional[List[str]] = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<SourceTree {self.root}>"

    def files(self) -> List[str]:
        """
        Relative POSIX paths of every regular file, sorted.
        Raises FileNotFoundError / NotADirectoryError / PermissionError.
        """
        with self._lock:
            if self._files is None:
                self._files = self._walk()
            return list(self._files)

    def _walk(self) -> List[str]:
        if not os.path.exists(self.root):
            raise FileNotFoundError(f"Target path does not exist: {self.root}")
        if not os.path.isdir(self.root):
            raise NotADirectoryError(f"Target path is not a directory: {self.root}")
        if not os.access(self.root, os.R_OK | os.X_OK):
            raise PermissionError(f"Target path is not readable: {self.root}")

        found: List[str] = []

        def _on_error(err: OSError):
            logger.warning(f"Cannot list {err.filename}: {err.strerror}")

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=_on_error):
            dirnames[:] = sorted(d for d in dirnames if d not in self.ignored_dirs)
            for name in filenames:
                full = os.path.join(dirpath, name)
                if os.path.islink(full) or not os.path.isfile(full):
                    continue
                found.append(os.path.relpath(full, self.root).replace(os.sep, "/"))

        found.sort()
        if self.max_files is not None and len(found) > self.max_files:
            logger.warning(
                f"{self.root}: {len(found)} files found, only the first {self.max_files} are scanned"
            )
            self.truncated = True
            found = found[: self.max_files]
        return found

    def path_of(self, rel_path: str) -> str:
        return os.path.join(self.root, *rel_path.split("/"))

    def exists(self, rel_path: str) -> bool:
        return os.path.isfile(self.path_of(rel_path))

    def mode(self, rel_path: str) -> int:
        return os.stat(self.path_of(rel_path)).st_mode

    def size(self, rel_path: str) -> int:
        return os.stat(self.path_of(rel_path)).st_size

    def is_binary(self, rel_path: str) -> bool:
        with open(self.path_of(rel_path), "rb") as fh:
            return b"\0" in fh.read(BINARY_SNIFF_BYTES)

    def read_text(self, rel_path: str) -> str:
        with open(self.path_of(rel_path), "r", encoding="utf-8", errors="replace") as fh:
            return fh.read()

    def text_files(self) -> List[str]:
        """files() minus binaries. Unreadable files are logged and skipped."""
        result: List[str] = []
        for rel in self.files():
            try:
                if not self.is_binary(rel):
                    result.append(rel)
            except OSError as e:
                logger.warning(f"Skipping unreadable file {rel}: {e}")
        return result
