"""Content identifiers for content-addressed storage."""

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from .exceptions import ContentHashError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


def compute_content_id(data: bytes) -> str:
    """Return the 64-char lowercase SHA-256 hex digest of data."""
    return hashlib.sha256(data).hexdigest()


def compute_file_hash(file_path: str) -> str:
    """Compute SHA-256 hash of a file, returning 64-char hex digest.

    Args:
        file_path: Path to the file to hash.

    Returns:
        64-character lowercase hexadecimal SHA-256 digest.

    Raises:
        FileNotFoundError: If the file does not exist.
        ContentHashError: If there's an error reading the file.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    try:
        sha256 = hashlib.sha256()
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                sha256.update(chunk)
        return sha256.hexdigest()
    except PermissionError as e:
        logger.error(f"Permission denied reading file: {file_path}")
        raise ContentHashError(f"Permission denied reading file: {file_path}") from e
    except IOError as e:
        logger.error(f"IO error reading file {file_path}: {e}")
        raise ContentHashError(f"Error reading file: {file_path}") from e


def canonical_json(document: Any) -> bytes:
    """Deterministic JSON encoding: sorted keys, no whitespace."""
    return json.dumps(document, sort_keys=True, separators=(",", ":")).encode("utf-8")


def compute_settings_hash(settings: dict[str, Any]) -> str:
    """Compute SHA-256 hash of a settings document with deterministic JSON serialization."""
    return hashlib.sha256(canonical_json(settings)).hexdigest()
