"""Content hashing and metadata documents for published animations."""

from .content_hash import compute_content_id, compute_file_hash, compute_settings_hash
from .exceptions import ContentHashError, PublishError, StorageUploadError
from .metadata_builder import MetadataBuilder

__all__ = [
    "MetadataBuilder",
    "compute_content_id",
    "compute_file_hash",
    "compute_settings_hash",
    "PublishError",
    "ContentHashError",
    "StorageUploadError",
]
