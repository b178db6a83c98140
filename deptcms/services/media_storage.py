"""
Local media storage for content attachments
"""
import logging
import mimetypes
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from deptcms.core.config import settings
from deptcms.core.errors import InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredMedia:
    """A saved upload"""
    filename: str  # generated name on disk
    original_name: str
    mime_type: str
    size: int


class LocalMediaStorage:
    """Stores uploads in a flat directory under generated names"""

    def __init__(self, base_path: Optional[str] = None, max_bytes: Optional[int] = None):
        self.base_path = Path(base_path or settings.UPLOAD_DIR)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.max_bytes = max_bytes if max_bytes is not None else settings.MAX_UPLOAD_BYTES

    def _safe_path(self, filename: str) -> Path:
        """Resolve filename inside base_path, rejecting path traversal"""
        safe_name = Path(filename).name
        if not safe_name or safe_name != filename:
            raise InvalidInputError(f"Invalid filename: {filename}")
        target = self.base_path / safe_name
        if not target.resolve().is_relative_to(self.base_path.resolve()):
            raise InvalidInputError(f"Invalid filename: {filename}")
        return target

    def path_for(self, filename: str) -> Path:
        return self._safe_path(filename)

    async def save(self, original_name: str, data: bytes, mime_type: Optional[str] = None) -> StoredMedia:
        """
        Write an upload to disk

        Args:
            original_name: the client's filename, kept for display only
            data: file contents
            mime_type: declared content type; guessed from the name when missing

        Returns:
            StoredMedia

        Raises:
            InvalidInputError: empty or oversized upload
        """
        if not data:
            raise InvalidInputError("Empty media file")
        if len(data) > self.max_bytes:
            raise InvalidInputError(
                f"Media file too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB"
            )

        original_name = Path(original_name or "upload").name
        suffix = Path(original_name).suffix.lower()
        filename = f"{uuid.uuid4().hex}{suffix}"
        target = self._safe_path(filename)

        # Atomic write: temp file then rename
        fd, tmp_path = tempfile.mkstemp(dir=self.base_path)
        try:
            with open(fd, "wb") as f:
                f.write(data)
            Path(tmp_path).rename(target)
        except Exception:
            Path(tmp_path).unlink(missing_ok=True)
            raise

        if not mime_type or mime_type == "application/octet-stream":
            mime_type = mimetypes.guess_type(original_name)[0] or "application/octet-stream"

        logger.info("Stored media %s (%s, %d bytes)", filename, original_name, len(data))
        return StoredMedia(
            filename=filename,
            original_name=original_name,
            mime_type=mime_type,
            size=len(data),
        )

    async def delete(self, filename: Optional[str]) -> bool:
        """
        Remove a stored file

        Returns:
            bool: False when there was nothing to delete
        """
        if not filename:
            return False
        target = self._safe_path(filename)
        if not target.exists():
            logger.warning("Media file %s already gone", filename)
            return False
        target.unlink()
        logger.info("Deleted media %s", filename)
        return True


def get_media_storage() -> LocalMediaStorage:
    """Media storage dependency"""
    return LocalMediaStorage()
