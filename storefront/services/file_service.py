# storefront/services/file_service.py
import logging
import aiofiles
import magic
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, Set
from ..config import Config
from ..errors import NotFoundError, StoreUnavailableError, ValidationError

logger = logging.getLogger(__name__)

# (bytes_written, total_bytes)
ProgressCallback = Callable[[int, int], None]

class BlobStore(ABC):
    """Interface for file storage used by product authoring"""

    @abstractmethod
    async def upload(self, bucket: str, key: str, data: bytes,
                     progress: Optional[ProgressCallback] = None) -> str:
        """Store data and return its public URL"""
        ...

    @abstractmethod
    async def download(self, bucket: str, key: str) -> bytes:
        ...

    @abstractmethod
    async def remove(self, bucket: str, key: str) -> bool:
        ...

    @staticmethod
    def key_from_url(url: str) -> str:
        """Public URLs end with the object key"""
        return url.rstrip("/").rsplit("/", 1)[-1]

class LocalBlobStore(BlobStore):
    """Blob store on the local filesystem"""

    CHUNK_SIZE = 64 * 1024

    ALLOWED_MIME_TYPES = {
        # documents
        "application/pdf",
        "application/epub+zip",
        "text/plain",

        # archives
        "application/zip",
        "application/x-rar",
        "application/x-rar-compressed",
        "application/vnd.rar",
        "application/x-7z-compressed",

        # media
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "audio/mpeg",
        "video/mp4",
    }

    def __init__(self, root: Optional[Path] = None, public_url: Optional[str] = None,
                 max_size: Optional[int] = None, allowed_types: Optional[Set[str]] = None):
        self.root = Path(root or Config.UPLOAD_DIR)
        self.public_url = (public_url or Config.PUBLIC_FILES_URL).rstrip("/")
        self.max_size = max_size or Config.MAX_UPLOAD_SIZE
        self.allowed_types = allowed_types or self.ALLOWED_MIME_TYPES

    def _path(self, bucket: str, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValidationError(f"Invalid file key: {key!r}")
        return self.root / bucket / key

    async def upload(self, bucket: str, key: str, data: bytes,
                     progress: Optional[ProgressCallback] = None) -> str:
        """Write data in chunks, reporting progress after each one"""
        if len(data) > self.max_size:
            raise ValidationError("File is larger than the allowed size")
        if data:
            mime_type = magic.from_buffer(data[:2048], mime=True)
            if mime_type not in self.allowed_types:
                raise ValidationError(f"File type {mime_type} is not allowed")

        path = self._path(bucket, key)
        total = len(data)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, 'wb') as f:
                written = 0
                for start in range(0, total, self.CHUNK_SIZE):
                    chunk = data[start:start + self.CHUNK_SIZE]
                    await f.write(chunk)
                    written += len(chunk)
                    if progress:
                        progress(written, total)
        except OSError as e:
            logger.error(f"Error saving file {bucket}/{key}: {e}")
            raise StoreUnavailableError("file upload") from e

        if progress and total == 0:
            progress(0, 0)

        logger.info(f"Stored {bucket}/{key} ({total} bytes)")
        return f"{self.public_url}/{bucket}/{key}"

    async def download(self, bucket: str, key: str) -> bytes:
        path = self._path(bucket, key)
        if not path.exists():
            raise NotFoundError(bucket, key)
        try:
            async with aiofiles.open(path, 'rb') as f:
                return await f.read()
        except OSError as e:
            logger.error(f"Error reading file {bucket}/{key}: {e}")
            raise StoreUnavailableError("file download") from e

    async def remove(self, bucket: str, key: str) -> bool:
        path = self._path(bucket, key)
        try:
            if path.exists():
                path.unlink()
                logger.info(f"Removed {bucket}/{key}")
                return True
            return False
        except OSError as e:
            logger.error(f"Error removing file {bucket}/{key}: {e}")
            raise StoreUnavailableError("file removal") from e
