"""
StorageBackend abstraction layer for content-addressed storage.

Defines the interface for artifact storage (local content store, Pinata
IPFS pinning) allowing the publisher to swap backends via configuration.
"""

from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """
    Abstract base class for content-addressed storage backends.

    Identifiers are derived from content, so uploading identical bytes
    twice returns the same identifier.

    Implementations:
    - LocalContentStore: SHA-256 addressed files under STORAGE_PATH
    - PinataStorage: IPFS pinning through the Pinata API
    """

    @abstractmethod
    async def upload(self, data: bytes, content_type: str, filename: str) -> str:
        """
        Store raw bytes.

        Args:
            data: Content to store
            content_type: MIME type (image/gif, application/json)
            filename: Name hint for backends that keep one

        Returns:
            str: Content identifier

        Raises:
            StorageUploadError: If the backend is unreachable or rejects the upload
        """
        pass

    @property
    @abstractmethod
    def uri_scheme(self) -> str:
        """URI scheme of identifiers, e.g. "ipfs" or "cas"."""
        pass

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Backend identifier for logs and health checks."""
        pass

    def content_uri(self, content_id: str) -> str:
        """Return scheme://contentId for a stored object."""
        return f"{self.uri_scheme}://{content_id}"
