"""Metadata documents describing published animations."""

import logging
from datetime import datetime
from typing import Any

from .content_hash import canonical_json, compute_settings_hash

logger = logging.getLogger(__name__)


class MetadataBuilder:
    """Builds the JSON metadata document published next to an animation."""

    def __init__(self, name_prefix: str, description: str) -> None:
        self.name_prefix = name_prefix
        self.description = description

    def edition_name(self, created_at: datetime) -> str:
        """Name derived from the job's creation time in epoch milliseconds."""
        return f"{self.name_prefix} #{int(created_at.timestamp() * 1000)}"

    def build_metadata(
        self,
        animation_uri: str,
        attributes: dict[str, Any],
        created_at: datetime,
        frame_count: int,
        size: int,
        frame_delay_ms: int,
    ) -> dict[str, Any]:
        """Build the metadata document for a rendered animation.

        Args:
            animation_uri: scheme://contentId of the encoded animation.
            attributes: LayerSettings in wire format, stored unchanged.
            created_at: Job creation time, used for the name.
            frame_count: Frames in the encoded animation.
            size: Canvas width and height in pixels.
            frame_delay_ms: Per-frame delay of the animation.

        Returns:
            Dictionary containing the complete metadata document.
        """
        metadata = {
            "name": self.edition_name(created_at),
            "description": self.description,
            "image": animation_uri,
            "animation_url": animation_uri,
            "attributes": attributes,
            "properties": {
                "settingsHash": compute_settings_hash(attributes),
                "frameCount": frame_count,
                "size": size,
                "frameDelayMs": frame_delay_ms,
            },
        }
        logger.debug(f"Built metadata for {animation_uri}")
        return metadata

    def serialize(self, metadata: dict[str, Any]) -> bytes:
        """Encode a document deterministically so identical input publishes identically."""
        return canonical_json(metadata)
