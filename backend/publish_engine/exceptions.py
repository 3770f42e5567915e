"""Custom exceptions for artifact publishing."""


class PublishError(Exception):
    """Base exception for publishing errors."""

    pass


class ContentHashError(PublishError):
    """Error computing a content identifier."""

    pass


class StorageUploadError(PublishError):
    """Storage backend rejected or could not receive an upload."""

    pass
