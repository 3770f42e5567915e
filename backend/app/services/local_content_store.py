"""
LocalContentStore - SHA-256 addressed files on the local filesystem.

Used for development, tests and single-host deployments.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from publish_engine import StorageUploadError, compute_content_id, compute_file_hash
from .storage_backend import StorageBackend

logger = logging.getLogger(__name__)


class LocalContentStore(StorageBackend):
    """
    Content-addressed store under {base_path}/content.

    Objects live at content/{cid[:2]}/{cid}; an existing object whose bytes
    still hash to its name is left untouched.
    """

    def __init__(self, base_path: str):
        self.content_path = Path(base_path) / "content"
        self.content_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"[LOCAL-CAS] LocalContentStore initialized at {self.content_path}")

    @property
    def uri_scheme(self) -> str:
        return "cas"

    @property
    def backend_name(self) -> str:
        return "local"

    def object_path(self, content_id: str) -> Path:
        return self.content_path / content_id[:2] / content_id

    async def upload(self, data: bytes, content_type: str, filename: str) -> str:
        content_id = compute_content_id(data)
        path = self.object_path(content_id)

        if path.exists() and compute_file_hash(str(path)) == content_id:
            logger.info(f"[LOCAL-CAS] Already stored: {content_id} ({filename})")
            return content_id

        tmp_path = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)
            logger.error(f"[LOCAL-CAS] Failed to store {filename}: {e}")
            raise StorageUploadError(f"Failed to store {filename}: {e}") from e

        logger.info(
            f"[LOCAL-CAS] Stored {filename} as {content_id} "
            f"({len(data)} bytes, {content_type})"
        )
        return content_id

    def read(self, content_id: str) -> Optional[bytes]:
        """Return stored bytes, or None if the object is missing."""
        path = self.object_path(content_id)
        if not path.exists():
            return None
        return path.read_bytes()
