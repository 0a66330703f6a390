"""
Local blob store for icon files.

Stands in for the external object store: callers get back a relative,
forward-slash reference and never see absolute paths.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class FileSystemBlobStore:
    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _safe_path(self, path: str) -> Path:
        # Prevent traversal
        target = (self.base_path / path).resolve()
        if not target.is_relative_to(self.base_path) or target == self.base_path:
            raise ValueError(f"Path traversal attempt detected: {path}")
        return target

    def save(self, name: str, data: bytes) -> str:
        """Write bytes under name and return the stored reference."""
        target = self._safe_path(name)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        reference = target.relative_to(self.base_path).as_posix()
        logger.debug("Stored blob %s (%d bytes)", reference, len(data))
        return reference

    def get(self, path: str) -> bytes:
        """Retrieve bytes by reference. Raises FileNotFoundError."""
        target = self._safe_path(path)
        if not target.exists():
            raise FileNotFoundError(f"File not found: {path}")
        return target.read_bytes()

    def delete(self, path: str) -> None:
        target = self._safe_path(path)
        if target.exists():
            target.unlink()
            logger.debug("Deleted blob %s", path)
