"""
Error types raised while reading instance metadata.

Token and instance-ID failures are fatal to a fetch and surface as
TokenError / RequiredFieldError with the request failure chained as the cause.
"""

from typing import Optional


class MetadataError(Exception):
    """Base class for instance metadata failures."""


class MetadataRequestError(MetadataError):
    """
    A single IMDS request failed.

    Args:
        message (str): Human readable description.
        url (str): Requested URL.
        status_code (int): HTTP status, or None when no response was received.
        field (str): Metadata field being read, or None for the token request.
    """

    def __init__(
        self,
        message: str,
        url: str,
        status_code: Optional[int] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.field = field


class TokenError(MetadataError):
    """The IMDSv2 session token could not be acquired."""


class RequiredFieldError(MetadataError):
    """A required metadata field (the instance ID) could not be read."""
