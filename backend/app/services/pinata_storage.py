"""
PinataStorage - IPFS pinning through the Pinata API.

IPFS CIDs are derived from content, so pinning identical bytes yields the
same identifier.
"""

import logging
from typing import Optional

import httpx

from publish_engine import StorageUploadError
from .storage_backend import StorageBackend

logger = logging.getLogger(__name__)

PIN_FILE_ENDPOINT = "/pinning/pinFileToIPFS"


class PinataStorage(StorageBackend):
    """
    Storage backend pinning files to IPFS with a Pinata JWT.

    Args:
        jwt: Pinata API JWT
        api_url: Pinata API base URL
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        jwt: str,
        api_url: str = "https://api.pinata.cloud",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not jwt:
            raise ValueError("PINATA_JWT must be set to use the pinata storage backend")
        self._jwt = jwt
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        logger.info(f"[PINATA] PinataStorage initialized ({self._api_url})")

    @property
    def uri_scheme(self) -> str:
        return "ipfs"

    @property
    def backend_name(self) -> str:
        return "pinata"

    async def upload(self, data: bytes, content_type: str, filename: str) -> str:
        url = f"{self._api_url}{PIN_FILE_ENDPOINT}"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    url,
                    headers={"Authorization": f"Bearer {self._jwt}"},
                    files={"file": (filename, data, content_type)},
                )
        except httpx.HTTPError as e:
            logger.error(f"[PINATA] Upload request failed for {filename}: {e}")
            raise StorageUploadError(f"Pinata upload request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(
                f"[PINATA] Upload rejected for {filename}: "
                f"{response.status_code} {response.text}"
            )
            raise StorageUploadError(
                f"Pinata upload failed ({response.status_code}): {response.text}"
            )

        try:
            content_id = response.json()["IpfsHash"]
        except (ValueError, KeyError) as e:
            raise StorageUploadError(
                f"Failed to parse Pinata response: {response.text}"
            ) from e

        logger.info(f"[PINATA] Pinned {filename} as {content_id}")
        return content_id
