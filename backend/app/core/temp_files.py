# backend/app/core/temp_files.py

import logging
import os
import re
import tempfile
import time
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(name: str) -> str:
    """Replace anything outside [a-zA-Z0-9.-] with '_'."""
    return _UNSAFE_CHARS.sub("_", os.path.basename(name or "")) or "document"


class TempFileManager:
    """Creates task-local temp files and removes them on every exit path."""

    def __init__(self, directory: Optional[str] = None):
        self.directory = directory or tempfile.gettempdir()

    def create_temp_file(self, content: bytes, original_name: str, prefix: str) -> str:
        timestamp = int(time.time() * 1000)
        path = os.path.join(self.directory, f"{prefix}-{timestamp}-{sanitize_filename(original_name)}")
        logger.debug("Creating temp file path=%s size=%d", path, len(content))
        with open(path, "wb") as f:
            f.write(content)
        return path

    def delete_temp_file(self, path: str) -> None:
        """Remove `path`; missing files and OS errors are logged, never raised."""
        try:
            os.remove(path)
            logger.debug("Temp file deleted path=%s", path)
        except FileNotFoundError:
            logger.debug("Temp file already gone path=%s", path)
        except OSError as e:
            logger.error("Failed to delete temp file path=%s error=%s", path, e)

    @contextmanager
    def temp_file(self, content: bytes, original_name: str, prefix: str) -> Iterator[str]:
        path = self.create_temp_file(content, original_name, prefix)
        try:
            yield path
        finally:
            self.delete_temp_file(path)
